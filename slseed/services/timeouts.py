from __future__ import annotations

# Upload fan-out (concurrent put_object calls per release)
UPLOAD_MAX_WORKERS = 8

# S3 listing / batch delete limits
LIST_PAGE_SIZE = 1000
DELETE_BATCH_SIZE = 1000

# CloudFormation describe_stacks polling
STACK_POLL_INTERVAL_SECONDS = 5.0

# CloudFront get_distribution polling (Status == "Deployed")
DISTRIBUTION_POLL_INTERVAL_SECONDS = 5.0

# Refetch-and-resubmit attempts on an ETag mismatch
CUTOVER_RETRY_ATTEMPTS = 3
