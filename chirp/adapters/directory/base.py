from abc import ABC, abstractmethod
from typing import Sequence

from pydantic import BaseModel, ConfigDict


class DirectoryUser(BaseModel):
	"""User record as returned by the directory; unknown fields are ignored."""

	model_config = ConfigDict(extra="ignore")

	id: str
	username: str | None = None
	profile_image_url: str | None = None
	image_url: str | None = None


class AbstractDirectoryClient(ABC):
	"""Interface for batched user lookups by identity key."""

	@abstractmethod
	async def lookup_by_ids(
		self,
		ids: Sequence[str],
		*,
		limit: int = 100,
	) -> list[DirectoryUser]:
		"""Fetch the directory records for ``ids`` in a single call.

		Args:
			ids: Identity keys to resolve.
			limit: Maximum number of records the directory should return.

		Returns:
			list[DirectoryUser]: Records for the ids that matched. Unknown ids are
			simply absent; that is not an error.
		"""
		...

	async def aclose(self) -> None:
		"""Release the underlying transport."""
		return None
