"""
AWS Signature Version 4 signing for S3 requests.
"""

import logging

from botocore.auth import S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials, EnvProvider
from botocore.exceptions import PartialCredentialsError

from storage.errors import CredentialsError

logger = logging.getLogger(__name__)


def load_credentials() -> Credentials:
    """Load signing credentials from the environment.

    Reads AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY and the optional
    AWS_SESSION_TOKEN.

    Raises:
        CredentialsError: If no complete set of credentials is present
    """
    try:
        credentials = EnvProvider().load()
    except PartialCredentialsError as e:
        raise CredentialsError(f"Incomplete credentials in environment: {e}") from e

    if credentials is None:
        raise CredentialsError(
            "No credentials found in environment "
            "(set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY)"
        )

    logger.debug(f"Loaded credentials via {credentials.method}")
    return credentials


class RequestSigner:
    """Signs outbound requests for one signing region."""

    SERVICE_NAME = "s3"

    def __init__(self, credentials: Credentials, region_name: str):
        self.credentials = credentials
        self.region_name = region_name

    @classmethod
    def from_environment(cls, region_name: str) -> "RequestSigner":
        return cls(load_credentials(), region_name)

    def sign(self, request: AWSRequest) -> AWSRequest:
        """Attach a fresh SigV4 signature to ``request`` in place.

        Only authentication headers (Authorization, X-Amz-Date,
        X-Amz-Content-SHA256, X-Amz-Security-Token) are added or replaced.
        Must be called once per request, right before it is sent.
        """
        frozen = self.credentials.get_frozen_credentials()
        if not frozen.access_key or not frozen.secret_key:
            raise CredentialsError("Credentials are missing an access key or secret key")

        S3SigV4Auth(frozen, self.SERVICE_NAME, self.region_name).add_auth(request)
        return request
