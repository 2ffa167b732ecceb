"""
DynamoDB retry wrappers with exponential backoff.

Provides additional retry logic on top of boto3's built-in retries for the
stats worker's reads and writes. Only throttling and transient service errors
are retried; validation and permission errors fail on the first attempt.
"""

from typing import Dict, Any
from botocore.exceptions import ClientError
from aws_lambda_powertools import Logger
from shared.retry_utils import exponential_backoff_retry

logger = Logger(child=True)

RETRYABLE_ERROR_CODES = frozenset([
    'ProvisionedThroughputExceededException',
    'ThrottlingException',
    'RequestLimitExceeded',
    'InternalServerError',
    'ServiceUnavailable'
])


def is_retryable_dynamodb_error(error: Exception) -> bool:
    """
    Check if a DynamoDB ClientError is retryable.

    Args:
        error: Exception raised by boto3

    Returns:
        True if the error is retryable
    """
    if not isinstance(error, ClientError):
        return False

    error_code = error.response.get('Error', {}).get('Code', '')
    retryable = error_code in RETRYABLE_ERROR_CODES

    if not retryable:
        logger.error(
            "Non-retryable DynamoDB error",
            extra={
                "error_code": error_code,
                "error_message": str(error)[:256]
            }
        )

    return retryable


@exponential_backoff_retry(
    max_retries=3,
    base_delay=0.5,
    max_delay=10.0,
    exponential_base=2.0,
    exceptions=(ClientError,),
    retry_if=is_retryable_dynamodb_error
)
def retry_table_query(table: Any, **kwargs) -> Dict[str, Any]:
    """
    Query a DynamoDB table resource with retry logic.

    Args:
        table: boto3 DynamoDB Table resource
        **kwargs: Arguments for query

    Returns:
        Response from query

    Raises:
        ClientError if not retryable or all retries fail
    """
    return table.query(**kwargs)


@exponential_backoff_retry(
    max_retries=3,
    base_delay=0.5,
    max_delay=10.0,
    exponential_base=2.0,
    exceptions=(ClientError,),
    retry_if=is_retryable_dynamodb_error
)
def retry_table_put_item(table: Any, item: Dict[str, Any], **kwargs) -> Dict[str, Any]:
    """
    Put an item to a DynamoDB table resource with retry logic.

    Args:
        table: boto3 DynamoDB Table resource
        item: Item to put
        **kwargs: Additional arguments for put_item

    Returns:
        Response from put_item

    Raises:
        ClientError if not retryable or all retries fail
    """
    return table.put_item(Item=item, **kwargs)
