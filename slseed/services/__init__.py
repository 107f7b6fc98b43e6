"""Release, provisioning and env services."""
