"""AWS session construction with optional STS assume role."""

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, ProfileNotFound
from typing import Any, Dict, Optional
import logging
from datetime import datetime, timedelta

from db_cost_audit.core.config import AuditConfig
from db_cost_audit.core.exceptions import AuthenticationError


logger = logging.getLogger(__name__)

ROLE_SESSION_NAME = 'db-cost-audit-session'


class SessionFactory:
    """Builds boto3 sessions for an audit run.

    Uses the configured profile (or the default credential chain) and, when an
    IAM role is configured, assumes it through STS.
    """

    def __init__(self, config: AuditConfig):
        """Initialize the session factory.

        Args:
            config: Audit configuration supplying region, profile and role
        """
        self.config = config
        self._cached_credentials: Optional[Dict[str, Any]] = None
        self._credentials_expiry: Optional[datetime] = None

    def get_session(self, region: Optional[str] = None) -> boto3.Session:
        """Get an AWS session for the audit.

        Args:
            region: Optional AWS region. If None, uses the configured region.

        Returns:
            boto3 Session

        Raises:
            AuthenticationError: If the profile is unknown or role assumption fails.
        """
        session_region = region or self.config.region

        try:
            base_session = boto3.Session(profile_name=self.config.profile_name, region_name=session_region)
        except ProfileNotFound as e:
            raise AuthenticationError(f"AWS profile not found: {self.config.profile_name}", details=str(e))

        if not self.config.iam_role_arn:
            return base_session

        credentials = self._get_credentials(base_session, self.config.iam_role_arn)
        return boto3.Session(
            aws_access_key_id=credentials['AccessKeyId'],
            aws_secret_access_key=credentials['SecretAccessKey'],
            aws_session_token=credentials['SessionToken'],
            region_name=session_region
        )

    def _get_credentials(self, base_session: boto3.Session, role_arn: str) -> Dict[str, Any]:
        """Get AWS credentials by assuming the specified IAM role.

        Raises:
            AuthenticationError: If role assumption fails.
        """
        if self._cached_credentials and self._credentials_expiry:
            # 5 minute buffer before expiry
            if datetime.utcnow() < (self._credentials_expiry - timedelta(minutes=5)):
                logger.debug("Using cached AWS credentials")
                return self._cached_credentials

        try:
            logger.info(f"Assuming IAM role: {role_arn}")
            sts_client = base_session.client('sts')
            response = sts_client.assume_role(
                RoleArn=role_arn,
                RoleSessionName=ROLE_SESSION_NAME,
                DurationSeconds=3600
            )

            credentials = response['Credentials']
            self._cached_credentials = credentials
            self._credentials_expiry = credentials['Expiration'].replace(tzinfo=None)

            logger.info("Successfully assumed IAM role")
            return credentials

        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            error_message = e.response.get('Error', {}).get('Message', str(e))

            if error_code == 'AccessDenied':
                raise AuthenticationError(
                    f"Access denied when assuming role {role_arn}. "
                    "Please check that:\n"
                    "1. The role exists and grants dynamodb, rds and cloudwatch read access\n"
                    "2. Your current AWS credentials have permission to assume this role\n"
                    "3. The role's trust policy allows your account/user to assume it"
                )
            raise AuthenticationError(
                f"Failed to assume IAM role {role_arn}: {error_code} - {error_message}"
            )

        except NoCredentialsError:
            raise AuthenticationError(
                "No AWS credentials found. Please configure your AWS credentials using:\n"
                "1. AWS CLI: aws configure\n"
                "2. Environment variables: AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY\n"
                "3. AWS SSO: aws sso login"
            )

        except BotoCoreError as e:
            raise AuthenticationError(f"AWS configuration error: {e}")

    def clear_cached_credentials(self) -> None:
        """Clear any cached credentials to force fresh authentication."""
        self._cached_credentials = None
        self._credentials_expiry = None
        logger.debug("Cleared cached AWS credentials")
