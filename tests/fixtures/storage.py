# tests/fixtures/storage.py
"""
🪣 Fake object storage:
- Same method surface as `app.utils.aws.S3Client`
- Records every put, delete and presign so tests can assert side effects
- Failure switches per operation (and per key for signing and delete)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import pytest

from app.utils.aws import S3StorageError


@dataclass
class StoredObject:
    data: bytes
    content_type: str
    metadata: Dict[str, str]


@dataclass
class FakeStorage:
    bucket: str = "test-bucket"
    objects: Dict[str, StoredObject] = field(default_factory=dict)
    puts: List[str] = field(default_factory=list)
    deletes: List[str] = field(default_factory=list)
    presigns: List[Tuple[str, int]] = field(default_factory=list)

    fail_put: bool = False
    fail_delete: bool = False
    fail_delete_keys: Set[str] = field(default_factory=set)
    fail_sign_keys: Set[str] = field(default_factory=set)
    fail_sign_all: bool = False

    def put_bytes(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        metadata: Optional[Mapping[str, str]] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        if self.fail_put:
            raise S3StorageError("simulated put failure")
        self.puts.append(key)
        self.objects[key] = StoredObject(data, content_type, dict(metadata or {}))

    def presigned_get(self, key: str, *, expires_in: int = 300, **_: Any) -> str:
        if self.fail_sign_all or key in self.fail_sign_keys:
            raise S3StorageError("simulated signing failure")
        self.presigns.append((key, expires_in))
        return f"https://{self.bucket}.example.test/{key}?X-Amz-Expires={expires_in}&X-Amz-Signature=fake"

    def delete(self, key: str) -> bool:
        if self.fail_delete or key in self.fail_delete_keys:
            return False
        self.deletes.append(key)
        self.objects.pop(key, None)
        return True

    def head(self, key: str) -> Optional[Dict[str, Any]]:
        obj = self.objects.get(key)
        if obj is None:
            return None
        return {"ContentLength": len(obj.data), "ContentType": obj.content_type, "Metadata": obj.metadata}


@pytest.fixture()
def fake_storage() -> FakeStorage:
    return FakeStorage()


__all__ = ["FakeStorage", "StoredObject", "fake_storage"]
