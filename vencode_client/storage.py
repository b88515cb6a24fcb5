"""
S3-compatible storage for job inputs and encoded outputs.
"""

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import boto3
from botocore.exceptions import ClientError

from .config import StorageCredentials

logger = logging.getLogger(__name__)


class S3Storage:
    """Uploads source videos and fetches renditions from the configured bucket."""

    def __init__(self, credentials: StorageCredentials, input_prefix: str = 'inputs/'):
        """
        Initialize the storage helper.

        Args:
            credentials: Bucket, region and optional keys, endpoint or profile
            input_prefix: S3 prefix under which uploaded inputs are stored
        """
        self.credentials = credentials
        self.bucket = credentials.bucket
        self.input_prefix = input_prefix

        # Ensure prefix ends with / if not empty
        if self.input_prefix and not self.input_prefix.endswith('/'):
            self.input_prefix += '/'

        session_kwargs = {
            'region_name': credentials.region
        }

        # Use profile if specified, otherwise explicit credentials (boto3 falls back to env vars)
        if credentials.profile:
            session_kwargs['profile_name'] = credentials.profile
        else:
            session_kwargs['aws_access_key_id'] = credentials.aws_access_key_id
            session_kwargs['aws_secret_access_key'] = credentials.aws_secret_access_key

        session = boto3.Session(**session_kwargs)

        s3_kwargs = {}
        if credentials.endpoint_url:
            s3_kwargs['endpoint_url'] = credentials.endpoint_url

        self.s3_client = session.client('s3', **s3_kwargs)

    def upload_input(self, file_path: Union[str, Path], key: Optional[str] = None, expires_in: int = 3600) -> str:
        """
        Upload a local video and return a URL the encoder can read it from.

        Args:
            file_path: Local file to upload
            key: Optional object key (defaults to inputs/<uuid>/<filename>)
            expires_in: Lifetime of the returned presigned URL in seconds

        Returns:
            Presigned GET URL for the uploaded object
        """
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"Input file not found: {path}")

        if not key:
            key = f"{self.input_prefix}{uuid.uuid4()}/{path.name}"

        try:
            self.s3_client.upload_file(str(path), self.bucket, key)
        except ClientError as e:
            logger.error(f"Failed to upload {path} to s3://{self.bucket}/{key}: {e}")
            raise

        logger.info(f"Uploaded {path} to s3://{self.bucket}/{key}")
        return self.presigned_url(key, expires_in=expires_in)

    def presigned_url(self, key: str, expires_in: int = 3600) -> str:
        """
        Create a presigned GET URL for an object.

        Args:
            key: Object key
            expires_in: URL lifetime in seconds

        Returns:
            Presigned URL
        """
        return self.s3_client.generate_presigned_url(
            'get_object',
            Params={'Bucket': self.bucket, 'Key': key},
            ExpiresIn=expires_in,
        )

    def download_output(self, key: str, destination: Union[str, Path]) -> Path:
        """
        Download an encoded output.

        Args:
            key: Object key of the rendition
            destination: Local file path or existing directory

        Returns:
            Path of the downloaded file
        """
        path = Path(destination)
        if path.is_dir():
            path = path / Path(key).name
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self.s3_client.download_file(self.bucket, key, str(path))
        except ClientError as e:
            if e.response['Error']['Code'] in ('NoSuchKey', '404'):
                raise FileNotFoundError(f"Output not found: s3://{self.bucket}/{key}")
            logger.error(f"Failed to download output: {e}")
            raise

        logger.info(f"Downloaded s3://{self.bucket}/{key} to {path}")
        return path

    def list_outputs(self, prefix: str = '') -> List[Dict[str, Any]]:
        """
        List objects under a prefix.

        Args:
            prefix: Key prefix to list

        Returns:
            List of {'key', 'size', 'last_modified'} dictionaries
        """
        try:
            paginator = self.s3_client.get_paginator('list_objects_v2')
            objects = []
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for item in page.get('Contents', []):
                    objects.append({
                        'key': item['Key'],
                        'size': item['Size'],
                        'last_modified': item['LastModified'],
                    })
            return objects

        except ClientError as e:
            logger.error(f"Failed to list outputs: {e}")
            raise
