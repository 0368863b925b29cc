"""Object storage for uploaded files."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from farmcms.services.errors import BlobStoreUnavailable

if TYPE_CHECKING:
    from flask import Flask


# Top-level key prefixes the media library knows how to classify.
KNOWN_FOLDERS = (
    'images',
    'videos',
    'files',
    'team',
    'accommodation',
    'animals',
    'vision',
    'gallery',
    'workshop',
)


class S3BlobStore:
    """Stores file bytes in an S3 bucket and hands back public URLs."""

    def __init__(
        self,
        bucket: str,
        region: str,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        endpoint_url: str | None = None,
    ):
        """
        Initialize the store.

        Args:
            bucket: Bucket name
            region: AWS region the bucket lives in
            access_key_id: AWS access key (falls back to the boto3 credential chain)
            secret_access_key: AWS secret key
            endpoint_url: Custom endpoint for S3-compatible services such as MinIO
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self._client_kwargs = {
            'region_name': region,
            'aws_access_key_id': access_key_id,
            'aws_secret_access_key': secret_access_key,
        }
        if endpoint_url:
            self._client_kwargs['endpoint_url'] = endpoint_url
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client('s3', **self._client_kwargs)
        return self._client

    def url_for_key(self, key: str) -> str:
        """Return the public URL for an object key."""
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> str:
        """Extract the object key from one of our public URLs."""
        path = unquote(urlparse(url).path).lstrip('/')
        if self.endpoint_url and path.startswith(f'{self.bucket}/'):
            path = path[len(self.bucket) + 1:]
        return path

    def put(self, data: bytes, key: str, content_type: str) -> str:
        """
        Upload bytes under ``key``.

        Returns:
            Public URL of the stored object

        Raises:
            BlobStoreUnavailable: if the upload fails
        """
        current_app.logger.info(
            f"Uploading to S3: bucket={self.bucket} key={key} type={content_type} size={len(data)}"
        )
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as exc:
            code = exc.response.get('Error', {}).get('Code')
            current_app.logger.error(f"S3 upload failed for {key}: {code} {exc}")
            if code == 'NoSuchBucket':
                raise BlobStoreUnavailable(f'S3 bucket "{self.bucket}" does not exist') from exc
            if code in ('AccessDenied', 'Forbidden'):
                raise BlobStoreUnavailable('Access denied. Check the storage credentials and permissions.') from exc
            raise BlobStoreUnavailable(f'Failed to upload file to S3: {code or exc}') from exc
        except BotoCoreError as exc:
            current_app.logger.error(f"S3 upload failed for {key}: {exc}")
            raise BlobStoreUnavailable(f'Failed to upload file to S3: {exc}') from exc

        return self.url_for_key(key)

    def delete(self, url: str) -> None:
        """
        Remove the object behind a public URL.

        Raises:
            BlobStoreUnavailable: if the store rejects or cannot process the request
        """
        key = self.key_from_url(url)
        if not key:
            raise BlobStoreUnavailable(f'Cannot derive an object key from {url!r}')
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreUnavailable(f'Failed to delete {key}: {exc}') from exc

    def list_objects(self) -> dict[str, list[dict]]:
        """
        List every object in the bucket grouped by known top-level folder.

        Gallery objects live under ``gallery/<album-slug>/`` and are all grouped
        under ``gallery``. Objects outside the known folders are ignored.
        """
        grouped: dict[str, list[dict]] = {folder: [] for folder in KNOWN_FOLDERS}
        try:
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket):
                for obj in page.get('Contents', []):
                    key = obj.get('Key')
                    if not key or key.endswith('/'):
                        continue
                    folder = key.split('/', 1)[0]
                    if folder not in grouped:
                        continue
                    grouped[folder].append({
                        'key': key,
                        'url': self.url_for_key(key),
                        'size': obj.get('Size') or 0,
                        'last_modified': obj.get('LastModified'),
                    })
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreUnavailable(f'Failed to list files from S3: {exc}') from exc
        return grouped

    def create_bucket(self, public_read: bool = True) -> None:
        """Create the bucket (if missing) and optionally attach a public-read policy."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError:
            params = {'Bucket': self.bucket}
            if self.region and self.region != 'us-east-1':
                params['CreateBucketConfiguration'] = {'LocationConstraint': self.region}
            self.client.create_bucket(**params)

        if public_read:
            self.client.put_public_access_block(
                Bucket=self.bucket,
                PublicAccessBlockConfiguration={
                    'BlockPublicAcls': True,
                    'IgnorePublicAcls': True,
                    'BlockPublicPolicy': False,
                    'RestrictPublicBuckets': False,
                },
            )
            self.client.put_bucket_policy(Bucket=self.bucket, Policy=_public_read_policy(self.bucket))


def _public_read_policy(bucket: str) -> str:
    return json.dumps({
        'Version': '2012-10-17',
        'Statement': [{
            'Sid': 'PublicReadGetObject',
            'Effect': 'Allow',
            'Principal': '*',
            'Action': 's3:GetObject',
            'Resource': f'arn:aws:s3:::{bucket}/*',
        }],
    })


def init_storage(app: Flask) -> None:
    """Attach the configured blob store to the application."""
    app.extensions['blob_store'] = S3BlobStore(
        bucket=app.config['AWS_S3_BUCKET_NAME'],
        region=app.config.get('AWS_REGION', 'eu-west-1'),
        access_key_id=app.config.get('AWS_ACCESS_KEY_ID'),
        secret_access_key=app.config.get('AWS_SECRET_ACCESS_KEY'),
        endpoint_url=app.config.get('AWS_S3_ENDPOINT_URL'),
    )


def get_blob_store():
    """Return the blob store bound to the current application."""
    return current_app.extensions['blob_store']


__all__ = [
    'KNOWN_FOLDERS',
    'BlobStoreUnavailable',
    'S3BlobStore',
    'init_storage',
    'get_blob_store',
]
