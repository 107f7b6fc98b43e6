"""CloudFormation stack provisioning."""
