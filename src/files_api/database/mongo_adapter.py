"""
MongoDB adapter for stored files.

One document per file in a single collection. Uniqueness of `name` (when
enabled) is enforced by a unique index, so concurrent uploads of the same
name resolve inside MongoDB: exactly one insert succeeds.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import jsonschema
from bson import ObjectId
from bson.errors import InvalidDocument
from pymongo import ASCENDING, MongoClient
from pymongo.errors import DocumentTooLarge, DuplicateKeyError, OperationFailure, PyMongoError

from files_api.errors import Conflict, FileTooLarge, InvalidUpload, StorageUnavailable
from files_api.utils.decorators import log_execution_time
from .schemas import (
    DEFAULT_ENCODING,
    DEFAULT_MIMETYPE,
    StoredObject,
    validate_stored_object_document,
)

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "FileUpload"
UNIQUE_NAME_INDEX = "name_unique"
NAME_LOOKUP_INDEX = "name_lookup"
DUPLICATE_KEY_CODES = (11000, 11001)


class MongoFileStore:
    """Writes stored files to MongoDB and reads them back by id or by name"""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        database_name: Optional[str] = None,
        collection_name: str = "files",
        unique_names: bool = True,
        timeout_ms: int = 5000,
        client: Optional[MongoClient] = None,
    ):
        self.connection_string = connection_string
        self.unique_names = unique_names
        self._indexes_ready = False

        if client is None:
            if not connection_string:
                raise ValueError("MongoDB connection string required. Set MONGODB_URI or pass connection_string")
            # MongoClient connects lazily; nothing here touches the network
            client = MongoClient(
                connection_string,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
                socketTimeoutMS=timeout_ms,
            )
        self.client = client

        if database_name:
            self.db = self.client[database_name]
        else:
            self.db = self.client.get_default_database(DEFAULT_DATABASE)
        self.collection = self.db[collection_name]

    def init_collections(self) -> None:
        """Create the `name` index matching the naming policy"""
        try:
            existing = self.collection.index_information()
            for index_name, info in existing.items():
                keys = [field for field, _direction in info.get("key", [])]
                if keys != ["name"]:
                    continue
                is_unique = bool(info.get("unique", False))
                if is_unique != self.unique_names:
                    policy = "unique" if self.unique_names else "non-unique"
                    raise ValueError(
                        f"Index '{index_name}' on {self.collection.name}.name has unique={is_unique}, "
                        f"which contradicts the configured {policy} naming policy"
                    )

            if self.unique_names:
                self.collection.create_index([("name", ASCENDING)], unique=True, name=UNIQUE_NAME_INDEX)
            else:
                self.collection.create_index([("name", ASCENDING)], name=NAME_LOOKUP_INDEX)
        except OperationFailure as e:
            if not isinstance(e, DuplicateKeyError) and e.code not in DUPLICATE_KEY_CODES:
                logger.error(f"Error initializing indexes on {self.collection.name}: {e}")
                raise StorageUnavailable() from e
            duplicates = ", ".join(repr(name) for name in self._duplicate_names())
            raise ValueError(
                f"Cannot create unique index on {self.collection.name}.name: "
                f"stored files share a name ({duplicates or 'unknown'}); "
                f"remove the duplicates or use the non-unique naming policy"
            ) from e
        except PyMongoError as e:
            logger.error(f"Error initializing indexes on {self.collection.name}: {e}")
            raise StorageUnavailable() from e

        self._indexes_ready = True
        logger.info(f"Indexes ready on {self.db.name}.{self.collection.name} (unique_names={self.unique_names})")

    def _duplicate_names(self, limit: int = 5) -> List[str]:
        pipeline = [
            {"$group": {"_id": "$name", "count": {"$sum": 1}}},
            {"$match": {"count": {"$gt": 1}}},
            {"$sort": {"_id": 1}},
            {"$limit": limit},
        ]
        try:
            return [group["_id"] for group in self.collection.aggregate(pipeline)]
        except PyMongoError as e:
            logger.warning(f"Could not list duplicate names in {self.collection.name}: {e}")
            return []

    def _ensure_indexes(self) -> None:
        # never insert before the name index exists
        if not self._indexes_ready:
            self.init_collections()

    @log_execution_time
    def store(self, stored_object: StoredObject) -> str:
        """Insert a new file document and return its id"""
        document = stored_object.to_document()
        try:
            validate_stored_object_document(document)
        except jsonschema.ValidationError as e:
            raise InvalidUpload(f"Uploaded file is invalid: {e.message}") from e

        self._ensure_indexes()

        try:
            result = self.collection.insert_one(document)
        except DuplicateKeyError as e:
            logger.warning(f"Rejected duplicate file name: {stored_object.name!r}")
            raise Conflict() from e
        except DocumentTooLarge as e:
            logger.warning(f"Rejected file {stored_object.name!r} ({stored_object.size} bytes): {e}")
            raise FileTooLarge() from e
        except InvalidDocument as e:
            logger.warning(f"Rejected file {stored_object.name!r}: {e}")
            raise InvalidUpload() from e
        except PyMongoError as e:
            logger.error(f"Error storing file {stored_object.name!r}: {e}")
            raise StorageUnavailable() from e

        file_id = str(result.inserted_id)
        logger.info(f"Stored file {stored_object.name!r} ({stored_object.size} bytes) with ID: {file_id}")
        return file_id

    def find(self, locator: str, by_name: bool = False) -> Optional[StoredObject]:
        """Look a file up by id, or by name when `by_name` is set"""
        if by_name:
            return self.find_by_name(locator)
        return self.find_by_id(locator)

    @log_execution_time
    def find_by_id(self, file_id: Union[str, ObjectId]) -> Optional[StoredObject]:
        """Get a file by id. Ids that are not valid ObjectIds match nothing."""
        if not ObjectId.is_valid(file_id):
            logger.info(f"No file with ID: {file_id!r}")
            return None

        document = self._find_one({"_id": ObjectId(file_id)})
        if document is None:
            logger.info(f"No file with ID: {file_id!r}")
            return None
        return self._to_stored_object(document)

    @log_execution_time
    def find_by_name(self, name: str) -> Optional[StoredObject]:
        """
        Get a file by name.

        Without unique names several documents can match; the earliest
        stored one (lowest `_id`) is returned.
        """
        document = self._find_one({"name": name}, sort=[("_id", ASCENDING)])
        if document is None:
            logger.info(f"No file named {name!r}")
            return None
        return self._to_stored_object(document)

    def _find_one(self, query: Dict[str, Any], **kwargs) -> Optional[Dict[str, Any]]:
        try:
            return self.collection.find_one(query, **kwargs)
        except PyMongoError as e:
            logger.error(f"Error reading from {self.collection.name} with {query!r}: {e}")
            raise StorageUnavailable() from e

    def _to_stored_object(self, document: Dict[str, Any]) -> StoredObject:
        data = bytes(document["data"])
        size = document.get("size")
        if size != len(data):
            logger.warning(f"Document {document['_id']} records size {size} for {len(data)} bytes; using byte count")

        return StoredObject(
            id=str(document["_id"]),
            name=document["name"],
            data=data,
            size=len(data),
            mimetype=document.get("mimetype") or DEFAULT_MIMETYPE,
            encoding=document.get("encoding") or DEFAULT_ENCODING,
            md5=document.get("md5"),
            truncated=bool(document.get("truncated", False)),
            uploaded_at=document.get("uploaded_at"),
        )

    def count(self) -> int:
        try:
            return self.collection.count_documents({})
        except PyMongoError as e:
            raise StorageUnavailable() from e

    def ping(self) -> None:
        """Round-trip to the server; raises StorageUnavailable if it is unreachable"""
        try:
            self.client.admin.command("ping")
        except PyMongoError as e:
            logger.error(f"MongoDB ping failed: {e}")
            raise StorageUnavailable() from e

    def close(self) -> None:
        """Close MongoDB connection"""
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
