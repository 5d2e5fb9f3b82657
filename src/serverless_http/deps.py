# =============================================================================
# Dependency Container
# =============================================================================
# Lazily created AWS clients for the developer tooling (remote invokes).
# The adapter itself never talks to AWS.
# =============================================================================

import json
import logging
import os
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, Optional

import boto3

logger = logging.getLogger(__name__)


@dataclass
class Deps:
    """
    Dependency container for the CLI.

    Clients are created on first access only, so local invokes never need
    AWS credentials.
    """
    region: str = field(default_factory=lambda: os.environ.get("AWS_REGION", "us-east-1"))
    profile: Optional[str] = None

    @cached_property
    def session(self):
        """boto3 session for the configured profile/region."""
        return boto3.session.Session(profile_name=self.profile, region_name=self.region)

    @cached_property
    def lambda_client(self):
        """Lambda client."""
        return self.session.client("lambda")

    def invoke_function(self, function_name: str, event: Dict[str, Any]) -> Dict[str, Any]:
        """
        Invoke a deployed function synchronously and decode its JSON payload.

        Raises:
            botocore.exceptions.ClientError: on AWS API errors
            RuntimeError: if the function itself failed
        """
        logger.info(f"Invoking Lambda function {function_name} in {self.region}")
        response = self.lambda_client.invoke(
            FunctionName=function_name,
            InvocationType="RequestResponse",
            Payload=json.dumps(event).encode("utf-8"),
        )
        payload = json.loads(response["Payload"].read() or b"null")
        if response.get("FunctionError"):
            raise RuntimeError(f"{function_name} failed: {payload}")
        return payload


def create_deps(region: str = None, profile: str = None) -> Deps:
    """Create a new Deps instance."""
    return Deps(region=region or os.environ.get("AWS_REGION", "us-east-1"), profile=profile)
