"""
Image metadata store.
Every query is scoped by owner: an image belonging to someone else behaves exactly like a missing one.
"""

from typing import List, Optional, Tuple
from uuid import UUID, uuid4
import logging

from config.db_connection import DatabaseManager
from models.image_models import Image
from utils.asset_host import UploadDescriptor

logger = logging.getLogger(__name__)

IMAGE_COLUMNS = """
    id, title, description, url, public_id, format, size, width, height,
    user_id, created_at, updated_at
"""


class ImageStore:
    """Reads and writes the images table."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def create(
        self,
        owner_id: UUID,
        descriptor: UploadDescriptor,
        title: str,
        description: Optional[str] = None,
    ) -> Image:
        """Persist what the asset host reported for an upload."""
        row = await self.db.fetch_one(
            f"""
            INSERT INTO images
            (id, user_id, title, description, url, public_id, format, size, width, height)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            RETURNING {IMAGE_COLUMNS}
            """,
            uuid4(),
            owner_id,
            title,
            description,
            descriptor.secure_url,
            descriptor.public_id,
            descriptor.format,
            descriptor.bytes,
            descriptor.width,
            descriptor.height,
        )
        return Image(**row)

    async def list_by_owner(self, owner_id: UUID, page: int, page_size: int) -> Tuple[List[Image], int]:
        """
        Get one page of the owner's images, newest first.

        Returns:
            Tuple of (images on the page, total number of images of the owner)
        """
        rows = await self.db.fetch_all(
            f"""
            SELECT {IMAGE_COLUMNS}
            FROM images
            WHERE user_id = $1
            ORDER BY created_at DESC, id DESC
            LIMIT $2 OFFSET $3
            """,
            owner_id,
            page_size,
            (page - 1) * page_size,
        )
        total = await self.db.fetch_val(
            "SELECT COUNT(*) FROM images WHERE user_id = $1",
            owner_id,
        )
        return [Image(**row) for row in rows], int(total or 0)

    async def get_owned(self, image_id: UUID, owner_id: UUID) -> Optional[Image]:
        row = await self.db.fetch_one(
            f"SELECT {IMAGE_COLUMNS} FROM images WHERE id = $1 AND user_id = $2",
            image_id,
            owner_id,
        )
        return Image(**row) if row else None

    async def update_owned(
        self,
        image_id: UUID,
        owner_id: UUID,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[Image]:
        """Change title and/or description. Fields left as None keep their value."""
        row = await self.db.fetch_one(
            f"""
            UPDATE images
            SET title = COALESCE($3, title),
                description = COALESCE($4, description),
                updated_at = now()
            WHERE id = $1 AND user_id = $2
            RETURNING {IMAGE_COLUMNS}
            """,
            image_id,
            owner_id,
            title,
            description,
        )
        return Image(**row) if row else None

    async def delete_owned(self, image_id: UUID, owner_id: UUID) -> bool:
        result = await self.db.execute(
            "DELETE FROM images WHERE id = $1 AND user_id = $2",
            image_id,
            owner_id,
        )
        return result != "DELETE 0"
