"""A small helper around a dynamic Kubernetes client for arbitrary objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class GroupVersionKind:
    """The API group, version and kind of an object."""

    group: str = ""
    version: str = ""
    kind: str = ""

    @classmethod
    def from_object(cls, obj):
        """Read the group, version and kind from an unstructured object mapping."""
        api_version = obj.get("apiVersion") or ""
        kind = obj.get("kind") or ""
        if api_version.count("/") > 1:
            return cls()
        group, _, version = api_version.rpartition("/")
        return cls(group=group, version=version, kind=kind)

    @property
    def group_kind(self):
        """The (group, kind) pair identifying the type independently of version."""
        return (self.group, self.kind)


@dataclass(frozen=True)
class GroupVersionResource:
    """The API group, version and resource name of a collection."""

    group: str = ""
    version: str = ""
    resource: str = ""

    def __str__(self):
        return f"{self.group}/{self.version}, Resource={self.resource}"


@dataclass(frozen=True)
class RESTMapping:
    """How a kind maps onto a resource of the API."""

    resource: GroupVersionResource = field(default_factory=GroupVersionResource)
    group_version_kind: GroupVersionKind = field(default_factory=GroupVersionKind)


@dataclass
class APIHelper:
    """Creates and inspects objects of any kind.

    ``client.resource(gvr)`` returns an object with ``namespace(ns)`` whose
    result has ``create(obj)``; ``mapper.rest_mapping(group_kind, *versions)``
    returns a RESTMapping; ``accessor`` has ``name(obj)``, ``namespace(obj)``
    and ``resource_version(obj)``.
    """

    client: Any
    mapper: Any
    accessor: Any
    discovery_client: Any = None

    def _rest_mapping(self, obj):
        gvk = GroupVersionKind.from_object(obj)
        try:
            return self.mapper.rest_mapping(gvk.group_kind, gvk.version)
        except Exception as exc:
            raise RuntimeError(f"could not get restMapping: {exc}") from exc

    def create_object(self, obj):
        """Create obj in the cluster and return what the API returned."""
        mapping = self._rest_mapping(obj)
        try:
            name = self.accessor.name(obj)
        except Exception as exc:
            raise RuntimeError(f"could not get name for object: {exc}") from exc
        try:
            namespace = self.accessor.namespace(obj)
        except Exception as exc:
            raise RuntimeError(
                f"couldn't get namespace for object {name}: {exc}"
            ) from exc

        resource = self.client.resource(mapping.resource)
        if resource is None:
            raise RuntimeError("failed to get a resource interface")
        return resource.namespace(namespace).create(obj)

    def name(self, obj):
        """Return the name of obj."""
        return self.accessor.name(obj)

    def namespace(self, obj):
        """Return the namespace of obj."""
        return self.accessor.namespace(obj)

    def resource_version(self, obj):
        """Return the resource name that obj's kind maps to."""
        return self._rest_mapping(obj).resource.resource