"""
Pytest configuration and fixtures for the UpPage tests.
"""
import hashlib
import threading
import pytest

from uppage.models.config import AwsConfig, PublishConfig
from uppage.models.data_models import LocalEntry, RemoteEntry


class InMemoryStorage:
    """Thread-safe stand-in for S3Manager keeping objects in a dict."""

    def __init__(self, bucket='site.uppage.com', objects=None):
        self.bucket = bucket
        self.objects = dict(objects or {})
        self.lock = threading.Lock()
        self.put_calls = []
        self.delete_calls = []

    def list_objects(self):
        with self.lock:
            return [
                RemoteEntry(path=key, fingerprint=hashlib.md5(data).hexdigest(), size=len(data))
                for key, data in sorted(self.objects.items())
            ]

    def put_object(self, key, local_path, md5_hex=None):
        with open(local_path, 'rb') as f:
            data = f.read()
        with self.lock:
            self.objects[key] = data
            self.put_calls.append(key)
        return hashlib.md5(data).hexdigest()

    def delete_object(self, key):
        with self.lock:
            self.objects.pop(key, None)
            self.delete_calls.append(key)


def make_local(path, content=b'', root='/site'):
    """Build a LocalEntry for in-memory planner and executor tests."""
    return LocalEntry(
        path=path,
        fingerprint=hashlib.md5(content).hexdigest(),
        size=len(content),
        absolute_path=f"{root}/{path}"
    )


def make_remote(path, content=b''):
    return RemoteEntry(path=path, fingerprint=hashlib.md5(content).hexdigest(), size=len(content))


@pytest.fixture
def site_dir(tmp_path):
    """A small website tree with a nested directory and a dotfile."""
    root = tmp_path / 'site'
    (root / 'css').mkdir(parents=True)
    (root / 'index.html').write_bytes(b'<h1>Hello</h1>')
    (root / 'error.html').write_bytes(b'<h1>Oops</h1>')
    (root / 'css' / 'style.css').write_bytes(b'body { color: red; }')
    (root / '.well-known').mkdir()
    (root / '.well-known' / 'security.txt').write_bytes(b'Contact: admin@example.com')
    return root


@pytest.fixture
def aws_config():
    return AwsConfig(access_key='test_key', secret_key='test_secret', region='eu-central-1')


@pytest.fixture
def publish_config(site_dir, aws_config):
    return PublishConfig(name='site', path=str(site_dir), aws=aws_config, concurrency=4)


@pytest.fixture
def storage():
    return InMemoryStorage()
