"""Remote resource state model."""

from .resource import Failure, Loading, NotRequested, RemoteResource, ResourceState, Success

__all__ = ["Failure", "Loading", "NotRequested", "RemoteResource", "ResourceState", "Success"]
