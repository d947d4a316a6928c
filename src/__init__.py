"""Gallery Media Ingestion Service Package."""

__version__ = "1.0.0"
__author__ = "Bharat kumar"
__description__ = (
    "Serverless gallery media ingestion using AWS Lambda, S3, and DynamoDB"
)

__all__ = ["handlers", "core"]
