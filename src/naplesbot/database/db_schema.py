"""
Database schema creation.

Every statement is idempotent (``CREATE TABLE IF NOT EXISTS``) so the schema
can be applied on each startup.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from naplesbot.util.logger import get_logger

if TYPE_CHECKING:
    from naplesbot.database.database import QueryRunner

logger = get_logger("database_schema")

TABLE_OPTIONS = "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci"


class SchemaManager:
    """Creates the request workflow tables."""

    @staticmethod
    async def initialize_schema(runner: "QueryRunner") -> None:
        await SchemaManager._create_tables(runner)
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(runner: "QueryRunner") -> None:
        await runner.execute(f"""
            CREATE TABLE IF NOT EXISTS users (
                id INT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
                discord_id VARCHAR(20) NOT NULL UNIQUE,
                username VARCHAR(100) NOT NULL,
                is_admin TINYINT(1) NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
            ) {TABLE_OPTIONS}
        """)

        await runner.execute(f"""
            CREATE TABLE IF NOT EXISTS base_requests (
                id INT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
                type ENUM('appeal', 'report', 'citizenship') NOT NULL,
                status ENUM('pending', 'accepted', 'rejected') NOT NULL DEFAULT 'pending',
                requester_id INT UNSIGNED NOT NULL,
                reviewer_id INT UNSIGNED NULL,
                admin_notes TEXT NULL,
                cache_message_id VARCHAR(20) NULL,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                reviewed_at TIMESTAMP NULL,
                INDEX idx_base_requests_status (status),
                INDEX idx_base_requests_type_status (type, status),
                FOREIGN KEY (requester_id) REFERENCES users(id) ON DELETE CASCADE,
                FOREIGN KEY (reviewer_id) REFERENCES users(id) ON DELETE SET NULL
            ) {TABLE_OPTIONS}
        """)

        await runner.execute(f"""
            CREATE TABLE IF NOT EXISTS appeals (
                request_id INT UNSIGNED PRIMARY KEY,
                sanction_description TEXT NOT NULL,
                appeal_description TEXT NOT NULL,
                media_links JSON NULL,
                FOREIGN KEY (request_id) REFERENCES base_requests(id) ON DELETE CASCADE
            ) {TABLE_OPTIONS}
        """)

        await runner.execute(f"""
            CREATE TABLE IF NOT EXISTS reports (
                request_id INT UNSIGNED PRIMARY KEY,
                reported_usernames JSON NOT NULL,
                incident_description TEXT NOT NULL,
                evidence_links JSON NULL,
                FOREIGN KEY (request_id) REFERENCES base_requests(id) ON DELETE CASCADE
            ) {TABLE_OPTIONS}
        """)

        await runner.execute(f"""
            CREATE TABLE IF NOT EXISTS citizenship_requests (
                request_id INT UNSIGNED PRIMARY KEY,
                additional_notes TEXT NULL,
                FOREIGN KEY (request_id) REFERENCES base_requests(id) ON DELETE CASCADE
            ) {TABLE_OPTIONS}
        """)
