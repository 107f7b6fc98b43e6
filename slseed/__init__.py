"""slseed: versioned S3 + CloudFront release tooling."""

__version__ = "0.3.0"
