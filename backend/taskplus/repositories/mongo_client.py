"""MongoDB Client - Connection and Collection Management"""
from typing import Any, Dict, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=settings.mongo_timeout_ms,
            connectTimeoutMS=settings.mongo_timeout_ms,
            socketTimeoutMS=30000,
        )
        # Test connection
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    """Get a collection from the database"""
    db = get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


def create_indexes() -> None:
    """Create all required indexes"""
    db = get_database()
    logger.info("Creating MongoDB indexes...")

    # Users and organization
    users = db["users"]
    users.create_index("user_id", unique=True)
    users.create_index("username", unique=True)
    users.create_index("email", unique=True)
    users.create_index("employee_id", sparse=True)

    employees = db["employees"]
    employees.create_index("employee_id", unique=True)
    employees.create_index("section_id")

    db["departments"].create_index("department_id", unique=True)
    db["departments"].create_index("name", unique=True)

    sections = db["sections"]
    sections.create_index("section_id", unique=True)
    sections.create_index([("department_id", ASCENDING), ("name", ASCENDING)], unique=True)

    # Permission registry and per-user access
    db["permissions"].create_index("key", unique=True)
    db["roles"].create_index("key", unique=True)
    db["user_access"].create_index("user_id", unique=True)

    # Tickets collection
    tickets = db["tickets"]
    tickets.create_index("ticket_id", unique=True)
    tickets.create_index([("resolution_status", ASCENDING), ("updated_at", ASCENDING)])
    tickets.create_index("agent_id")
    tickets.create_index("customer_phone")
    tickets.create_index("created_at", background=True)

    # Follow-ups and reviews
    follow_ups = db["follow_ups"]
    follow_ups.create_index("follow_up_id", unique=True)
    follow_ups.create_index([("ticket_id", ASCENDING), ("created_at", DESCENDING)])
    follow_ups.create_index("issue_solved")

    reviews = db["reviews"]
    reviews.create_index("review_id", unique=True)
    reviews.create_index("ticket_id")

    # Notification outbox collection
    notification_outbox = db["notification_outbox"]
    notification_outbox.create_index("outbox_id", unique=True)
    notification_outbox.create_index([("status", ASCENDING), ("next_retry_at", ASCENDING)])
    notification_outbox.create_index("ticket_id")

    # In-app notifications
    notifications = db["notifications"]
    notifications.create_index("notification_id", unique=True)
    notifications.create_index([("user_id", ASCENDING), ("is_read", ASCENDING)])

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        get_database().command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except Exception as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
