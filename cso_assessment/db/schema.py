"""DDL for the MySQL-compatible assessment store.

Usage:
    from cso_assessment.db.schema import create_schema
    create_schema()
"""

import logging

from .client import execute_query

logger = logging.getLogger(__name__)

TABLES = {
    "sections": """
        CREATE TABLE IF NOT EXISTS sections (
            `id` VARCHAR(64) PRIMARY KEY,
            `title` VARCHAR(255) NOT NULL,
            `description` TEXT,
            `order` INT NOT NULL DEFAULT 0,
            `weight` DOUBLE NOT NULL DEFAULT 1.0
        )
    """,
    "questions": """
        CREATE TABLE IF NOT EXISTS questions (
            `id` VARCHAR(64) PRIMARY KEY,
            `section_id` VARCHAR(64) NOT NULL,
            `text` TEXT NOT NULL,
            `description` TEXT,
            `type` VARCHAR(32) NOT NULL,
            `order` INT NOT NULL DEFAULT 0,
            `options` JSON,
            `option_weights` JSON,
            `weight` DOUBLE NOT NULL DEFAULT 1.0,
            `mandatory` BOOLEAN NOT NULL DEFAULT TRUE,
            FOREIGN KEY (`section_id`) REFERENCES sections(`id`) ON DELETE CASCADE
        )
    """,
    "assessments": """
        CREATE TABLE IF NOT EXISTS assessments (
            `id` VARCHAR(64) PRIMARY KEY,
            `organization_id` VARCHAR(64) NOT NULL,
            `status` VARCHAR(32) NOT NULL DEFAULT 'IN_PROGRESS',
            `started_at` DATETIME(3) NOT NULL,
            `completed_at` DATETIME(3) NULL,
            INDEX idx_assessments_org (`organization_id`)
        )
    """,
    "responses": """
        CREATE TABLE IF NOT EXISTS responses (
            `id` VARCHAR(64) PRIMARY KEY,
            `assessment_id` VARCHAR(64) NOT NULL,
            `question_id` VARCHAR(64) NOT NULL,
            `value` JSON,
            `created_at` DATETIME(3) NOT NULL,
            UNIQUE KEY uq_responses_assessment_question (`assessment_id`, `question_id`),
            FOREIGN KEY (`assessment_id`) REFERENCES assessments(`id`) ON DELETE CASCADE,
            FOREIGN KEY (`question_id`) REFERENCES questions(`id`) ON DELETE CASCADE
        )
    """,
    "suggestion_rules": """
        CREATE TABLE IF NOT EXISTS suggestion_rules (
            `id` VARCHAR(64) PRIMARY KEY,
            `kind` VARCHAR(32) NOT NULL,
            `scope_id` VARCHAR(64) NULL,
            `condition` JSON NOT NULL,
            `suggestion` TEXT NOT NULL,
            `category` VARCHAR(255),
            `priority` INT NOT NULL DEFAULT 5,
            `weight` DOUBLE NOT NULL DEFAULT 1.0,
            `is_active` BOOLEAN NOT NULL DEFAULT TRUE,
            INDEX idx_rules_kind_scope (`kind`, `scope_id`)
        )
    """,
    "reports": """
        CREATE TABLE IF NOT EXISTS reports (
            `id` VARCHAR(64) PRIMARY KEY,
            `assessment_id` VARCHAR(64) NOT NULL UNIQUE,
            `content` JSON,
            `created_at` DATETIME(3) NOT NULL,
            FOREIGN KEY (`assessment_id`) REFERENCES assessments(`id`) ON DELETE CASCADE
        )
    """,
    "report_suggestions": """
        CREATE TABLE IF NOT EXISTS report_suggestions (
            `id` VARCHAR(64) PRIMARY KEY,
            `report_id` VARCHAR(64) NOT NULL,
            `type` VARCHAR(32) NOT NULL,
            `source_id` VARCHAR(64) NULL,
            `suggestion` TEXT NOT NULL,
            `priority` INT NOT NULL,
            `weight` DOUBLE NOT NULL DEFAULT 1.0,
            `metadata` JSON,
            `created_at` DATETIME(3) NOT NULL,
            INDEX idx_report_suggestions_report (`report_id`),
            FOREIGN KEY (`report_id`) REFERENCES reports(`id`) ON DELETE CASCADE
        )
    """,
}


def create_schema() -> list[str]:
    """Create all tables in dependency order. Existing tables are left untouched.

    Returns:
        Names of the tables issued
    """
    for name, ddl in TABLES.items():
        execute_query(ddl, fetch="none")
        logger.debug(f"Ensured table {name}")
    logger.info(f"Schema ready ({len(TABLES)} tables)")
    return list(TABLES)
