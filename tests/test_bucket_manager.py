"""
Tests for BucketManager.
"""
import json
import pytest
from unittest.mock import Mock
from botocore.exceptions import ClientError, EndpointConnectionError

from uppage.clients.bucket_manager import BucketManager, public_read_policy
from uppage.exceptions import LifecycleError


@pytest.fixture
def bucket_manager(aws_config):
    return BucketManager(aws_config, client=Mock())


class TestBucketManagerExists:
    """Test cases for BucketManager.exists."""

    def test_exists_true(self, bucket_manager):
        bucket_manager.client.list_buckets.return_value = {
            'Buckets': [{'Name': 'other'}, {'Name': 'site.uppage.com'}]
        }

        assert bucket_manager.exists('site.uppage.com') is True

    def test_exists_false(self, bucket_manager):
        bucket_manager.client.list_buckets.return_value = {'Buckets': [{'Name': 'other'}]}

        assert bucket_manager.exists('site.uppage.com') is False

    def test_exists_no_buckets(self, bucket_manager):
        bucket_manager.client.list_buckets.return_value = {}

        assert bucket_manager.exists('site.uppage.com') is False

    def test_exists_failure(self, bucket_manager):
        bucket_manager.client.list_buckets.side_effect = EndpointConnectionError(endpoint_url='https://s3')

        with pytest.raises(LifecycleError, match='Could not search'):
            bucket_manager.exists('site.uppage.com')


class TestBucketManagerCreate:
    """Test cases for BucketManager.create."""

    def test_create_configures_website(self, bucket_manager):
        client = bucket_manager.client

        bucket_manager.create('site.uppage.com', 'eu-central-1', 'index.html', 'error.html')

        client.create_bucket.assert_called_once_with(
            Bucket='site.uppage.com',
            CreateBucketConfiguration={'LocationConstraint': 'eu-central-1'}
        )
        client.put_public_access_block.assert_called_once()

        policy_kwargs = client.put_bucket_policy.call_args[1]
        assert policy_kwargs['Bucket'] == 'site.uppage.com'
        policy = json.loads(policy_kwargs['Policy'])
        statement = policy['Statement'][0]
        assert statement['Effect'] == 'Allow'
        assert statement['Action'] == 's3:GetObject'
        assert statement['Resource'] == ['arn:aws:s3:::site.uppage.com/*']

        client.put_bucket_website.assert_called_once_with(
            Bucket='site.uppage.com',
            WebsiteConfiguration={
                'IndexDocument': {'Suffix': 'index.html'},
                'ErrorDocument': {'Key': 'error.html'}
            }
        )

    def test_create_in_us_east_1_omits_location(self, bucket_manager):
        bucket_manager.create('site.uppage.com', 'us-east-1')

        bucket_manager.client.create_bucket.assert_called_once_with(Bucket='site.uppage.com')

    def test_create_failure(self, bucket_manager):
        bucket_manager.client.create_bucket.side_effect = ClientError(
            {'Error': {'Code': 'BucketAlreadyExists'}}, 'CreateBucket'
        )

        with pytest.raises(LifecycleError, match='Could not create'):
            bucket_manager.create('site.uppage.com', 'eu-central-1')

        bucket_manager.client.put_bucket_policy.assert_not_called()

    def test_configure_failure(self, bucket_manager):
        bucket_manager.client.put_bucket_website.side_effect = ClientError(
            {'Error': {'Code': 'AccessDenied'}}, 'PutBucketWebsite'
        )

        with pytest.raises(LifecycleError, match='Could not configure'):
            bucket_manager.create('site.uppage.com', 'eu-central-1')


class TestBucketManagerDelete:
    """Test cases for BucketManager.delete."""

    def _paginator(self, bucket_manager, pages):
        paginator = Mock()
        paginator.paginate.return_value = pages
        bucket_manager.client.get_paginator.return_value = paginator
        return paginator

    def test_delete_empties_then_deletes(self, bucket_manager):
        self._paginator(bucket_manager, [
            {'Contents': [{'Key': 'index.html'}, {'Key': 'css/style.css'}]},
            {'Contents': [{'Key': 'error.html'}]},
        ])
        bucket_manager.client.delete_objects.return_value = {}

        bucket_manager.delete('site.uppage.com')

        assert bucket_manager.client.delete_objects.call_count == 2
        first_batch = bucket_manager.client.delete_objects.call_args_list[0][1]
        assert first_batch['Delete']['Objects'] == [{'Key': 'index.html'}, {'Key': 'css/style.css'}]
        bucket_manager.client.delete_bucket.assert_called_once_with(Bucket='site.uppage.com')

    def test_delete_empty_bucket(self, bucket_manager):
        self._paginator(bucket_manager, [{}])

        bucket_manager.delete('site.uppage.com')

        bucket_manager.client.delete_objects.assert_not_called()
        bucket_manager.client.delete_bucket.assert_called_once_with(Bucket='site.uppage.com')

    def test_delete_object_errors(self, bucket_manager):
        self._paginator(bucket_manager, [{'Contents': [{'Key': 'index.html'}]}])
        bucket_manager.client.delete_objects.return_value = {
            'Errors': [{'Key': 'index.html', 'Code': 'AccessDenied'}]
        }

        with pytest.raises(LifecycleError, match='index.html'):
            bucket_manager.delete('site.uppage.com')

        bucket_manager.client.delete_bucket.assert_not_called()

    def test_delete_bucket_failure(self, bucket_manager):
        self._paginator(bucket_manager, [{}])
        bucket_manager.client.delete_bucket.side_effect = ClientError(
            {'Error': {'Code': 'BucketNotEmpty'}}, 'DeleteBucket'
        )

        with pytest.raises(LifecycleError, match='Could not delete'):
            bucket_manager.delete('site.uppage.com')


def test_public_read_policy():
    policy = public_read_policy('example.uppage.com')

    assert policy['Statement'][0]['Principal'] == '*'
    assert policy['Statement'][0]['Sid'] == 'PublicReadGetObject'
