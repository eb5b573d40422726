# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""AWS Secrets Manager backed secret resolver."""

import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class SecretResolutionError(Exception):
    """Raised when a secret cannot be resolved."""

    def __init__(self, message: str, secret_name: str):
        super().__init__(message)
        self.secret_name = secret_name


class SecretsManagerSecretResolver:
    """
    Resolves secrets from AWS Secrets Manager.

    Uses the ambient IAM role for authentication - no hardcoded credentials.
    boto3 calls run in the default thread pool so they never block the
    event loop.
    """

    def __init__(self, region: str = "us-east-1"):
        """
        Initialize the Secrets Manager client.

        Args:
            region: AWS region holding the secrets
        """
        config = Config(
            region_name=region,
            retries={
                'max_attempts': 3,
                'mode': 'adaptive'
            }
        )
        self.region = region
        self.client = boto3.client('secretsmanager', config=config)

    async def resolve_secret(self, name: str) -> str:
        """
        Fetch the string value of a secret.

        Args:
            name: Secret name or ARN

        Returns:
            The secret string

        Raises:
            SecretResolutionError: If the secret is missing, binary, or the call fails
        """
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self.client.get_secret_value(SecretId=name)
            )
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            raise SecretResolutionError(
                f"Failed to resolve secret {name}: {error_code}", secret_name=name
            ) from e
        except BotoCoreError as e:
            raise SecretResolutionError(
                f"Failed to resolve secret {name}: {e}", secret_name=name
            ) from e

        secret = response.get("SecretString")
        if not secret:
            raise SecretResolutionError(
                f"Secret {name} has no string value", secret_name=name
            )

        logger.debug(f"Resolved secret {name}")
        return secret
