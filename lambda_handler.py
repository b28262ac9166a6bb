"""
AWS Lambda handler for the Contact Consolidation Service
This module adapts the FastAPI application to AWS Lambda + API Gateway
"""

import json
import logging

from mangum import Mangum

from main import app

logger = logging.getLogger(__name__)

handler = Mangum(
    app,
    lifespan="off",  # Lambda containers are reused; no startup/shutdown hooks
    api_gateway_base_path="/",
    text_mime_types=[
        "application/json",
        "text/plain",
    ],
    exclude_headers=["x-amzn-trace-id"]
)


def _describe_event(event) -> str:
    if event.get("version") == "2.0":
        http = event.get("requestContext", {}).get("http", {})
        return f"API Gateway v2 event: {http.get('method', 'UNKNOWN')} {http.get('path', 'UNKNOWN')}"
    if "httpMethod" in event:
        return f"API Gateway v1 event: {event.get('httpMethod')} {event.get('path', 'UNKNOWN')}"
    return "Unknown event format"


def lambda_handler(event, context):
    """
    AWS Lambda entry point

    Args:
        event: API Gateway event data
        context: Lambda runtime context

    Returns:
        API Gateway response format
    """
    logger.info(_describe_event(event))

    try:
        response = handler(event, context)
        logger.info(f"Mangum response status: {response.get('statusCode', 'UNKNOWN')}")
        return response

    except Exception as e:
        logger.error(f"Lambda handler error: {e}", exc_info=True)

        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({
                "error": "InternalServerError",
                "message": "An unexpected error occurred",
                "requestId": getattr(context, "aws_request_id", None)
            })
        }
