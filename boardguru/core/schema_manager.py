"""
Schema management utilities.
Creates the BoardGuru tables, constraints and indexes idempotently.
"""

from typing import List
from boardguru.core.database import get_db_manager
from boardguru.core.exceptions import DatabaseException
import logging

logger = logging.getLogger(__name__)


TABLE_STATEMENTS: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id UUID PRIMARY KEY,
        email VARCHAR(255) UNIQUE NOT NULL,
        full_name VARCHAR(255),
        company VARCHAR(255),
        position VARCHAR(255),
        password_hash VARCHAR(255),
        platform_role VARCHAR(20) NOT NULL DEFAULT 'user',
        status VARCHAR(30) NOT NULL DEFAULT 'pending_password',
        last_login TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT check_user_role CHECK (platform_role IN ('user', 'admin')),
        CONSTRAINT check_user_status CHECK (status IN ('active', 'pending_password', 'suspended'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS registration_requests (
        registration_id UUID PRIMARY KEY,
        email VARCHAR(255) UNIQUE NOT NULL,
        full_name VARCHAR(100) NOT NULL,
        company VARCHAR(100) NOT NULL,
        position VARCHAR(100) NOT NULL,
        message VARCHAR(500),
        status VARCHAR(20) NOT NULL DEFAULT 'pending',
        approval_token VARCHAR(128),
        token_expires_at TIMESTAMPTZ,
        reviewed_by VARCHAR(255),
        reviewed_at TIMESTAMPTZ,
        rejection_reason TEXT,
        user_id UUID REFERENCES users(user_id) ON DELETE SET NULL,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT check_registration_status CHECK (status IN ('pending', 'approved', 'rejected'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS otp_codes (
        otp_id UUID PRIMARY KEY,
        email VARCHAR(255) NOT NULL,
        code_hash VARCHAR(128) NOT NULL,
        purpose VARCHAR(30) NOT NULL,
        attempts INT NOT NULL DEFAULT 0,
        expires_at TIMESTAMPTZ NOT NULL,
        used_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS organizations (
        organization_id UUID PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        slug VARCHAR(50) UNIQUE NOT NULL,
        description VARCHAR(500),
        industry VARCHAR(100),
        size VARCHAR(20),
        website VARCHAR(255),
        settings JSONB NOT NULL DEFAULT '{}'::jsonb,
        status VARCHAR(20) NOT NULL DEFAULT 'active',
        created_by UUID REFERENCES users(user_id),
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        archived_at TIMESTAMPTZ,
        CONSTRAINT check_org_status CHECK (status IN ('active', 'archived', 'deleted')),
        CONSTRAINT check_org_size CHECK (size IS NULL OR size IN ('startup', 'small', 'medium', 'large', 'enterprise'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS organization_members (
        organization_id UUID NOT NULL REFERENCES organizations(organization_id) ON DELETE CASCADE,
        user_id UUID NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        role VARCHAR(20) NOT NULL DEFAULT 'member',
        status VARCHAR(20) NOT NULL DEFAULT 'active',
        invited_by UUID,
        joined_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (organization_id, user_id),
        CONSTRAINT check_member_role CHECK (role IN ('owner', 'admin', 'member', 'viewer', 'guest')),
        CONSTRAINT check_member_status CHECK (status IN ('active', 'invited', 'suspended'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS organization_invitations (
        invitation_id UUID PRIMARY KEY,
        organization_id UUID NOT NULL REFERENCES organizations(organization_id) ON DELETE CASCADE,
        email VARCHAR(255) NOT NULL,
        role VARCHAR(20) NOT NULL,
        token VARCHAR(128) UNIQUE NOT NULL,
        status VARCHAR(20) NOT NULL DEFAULT 'pending',
        message VARCHAR(500),
        invited_by UUID,
        expires_at TIMESTAMPTZ NOT NULL,
        accepted_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT check_org_invitation_status CHECK (status IN ('pending', 'accepted', 'revoked'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS boards (
        board_id UUID PRIMARY KEY,
        organization_id UUID NOT NULL REFERENCES organizations(organization_id) ON DELETE CASCADE,
        name VARCHAR(255) NOT NULL,
        description TEXT,
        board_type VARCHAR(20) NOT NULL DEFAULT 'governance',
        status VARCHAR(20) NOT NULL DEFAULT 'active',
        meeting_frequency VARCHAR(20) NOT NULL DEFAULT 'quarterly',
        chair_id UUID,
        secretary_id UUID,
        next_meeting_date TIMESTAMPTZ,
        created_by UUID,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (organization_id, name),
        CONSTRAINT check_board_type CHECK (board_type IN ('executive', 'advisory', 'committee', 'governance')),
        CONSTRAINT check_board_status CHECK (status IN ('active', 'inactive', 'dissolved'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS board_members (
        board_member_id UUID PRIMARY KEY,
        board_id UUID NOT NULL REFERENCES boards(board_id) ON DELETE CASCADE,
        user_id UUID NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        role VARCHAR(20) NOT NULL DEFAULT 'member',
        status VARCHAR(20) NOT NULL DEFAULT 'active',
        voting_rights BOOLEAN NOT NULL DEFAULT TRUE,
        term_start DATE,
        term_end DATE,
        appointed_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (board_id, user_id),
        CONSTRAINT check_board_member_role CHECK (role IN ('chair', 'vice_chair', 'secretary', 'treasurer', 'member', 'advisor')),
        CONSTRAINT check_board_member_status CHECK (status IN ('active', 'inactive', 'resigned'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS meetings (
        meeting_id UUID PRIMARY KEY,
        organization_id UUID NOT NULL REFERENCES organizations(organization_id) ON DELETE CASCADE,
        board_id UUID REFERENCES boards(board_id) ON DELETE SET NULL,
        title VARCHAR(255) NOT NULL,
        description TEXT,
        meeting_type VARCHAR(20) NOT NULL DEFAULT 'regular',
        status VARCHAR(20) NOT NULL DEFAULT 'scheduled',
        scheduled_start TIMESTAMPTZ NOT NULL,
        scheduled_end TIMESTAMPTZ,
        location VARCHAR(255),
        virtual_meeting_url VARCHAR(500),
        minutes TEXT,
        created_by UUID,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT check_meeting_type CHECK (meeting_type IN ('regular', 'special', 'emergency', 'annual')),
        CONSTRAINT check_meeting_status CHECK (status IN ('scheduled', 'in_progress', 'completed', 'cancelled', 'postponed'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS meeting_agenda_items (
        item_id UUID PRIMARY KEY,
        meeting_id UUID NOT NULL REFERENCES meetings(meeting_id) ON DELETE CASCADE,
        position INT NOT NULL,
        title VARCHAR(255) NOT NULL,
        description TEXT,
        item_type VARCHAR(20) NOT NULL DEFAULT 'discussion',
        duration_minutes INT,
        presenter_id UUID,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS meeting_attendance (
        meeting_id UUID NOT NULL REFERENCES meetings(meeting_id) ON DELETE CASCADE,
        user_id UUID NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        status VARCHAR(20) NOT NULL,
        proxy_holder_id UUID,
        recorded_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (meeting_id, user_id),
        CONSTRAINT check_attendance_status CHECK (status IN ('present', 'absent', 'excused', 'proxy'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS resolutions (
        resolution_id UUID PRIMARY KEY,
        meeting_id UUID NOT NULL REFERENCES meetings(meeting_id) ON DELETE CASCADE,
        title VARCHAR(255) NOT NULL,
        resolution_text TEXT NOT NULL,
        resolution_type VARCHAR(20) NOT NULL DEFAULT 'ordinary',
        status VARCHAR(20) NOT NULL DEFAULT 'proposed',
        motion_by UUID,
        seconded_by UUID,
        votes_for INT NOT NULL DEFAULT 0,
        votes_against INT NOT NULL DEFAULT 0,
        votes_abstain INT NOT NULL DEFAULT 0,
        proposed_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        voted_at TIMESTAMPTZ,
        effective_date TIMESTAMPTZ,
        CONSTRAINT check_resolution_type CHECK (resolution_type IN ('ordinary', 'special', 'unanimous')),
        CONSTRAINT check_resolution_status CHECK (status IN ('proposed', 'passed', 'failed', 'withdrawn'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS resolution_votes (
        vote_id UUID PRIMARY KEY,
        resolution_id UUID NOT NULL REFERENCES resolutions(resolution_id) ON DELETE CASCADE,
        user_id UUID NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        vote VARCHAR(10) NOT NULL,
        notes TEXT,
        voted_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (resolution_id, user_id),
        CONSTRAINT check_vote CHECK (vote IN ('for', 'against', 'abstain'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vaults (
        vault_id UUID PRIMARY KEY,
        organization_id UUID NOT NULL REFERENCES organizations(organization_id) ON DELETE CASCADE,
        name VARCHAR(255) NOT NULL,
        description VARCHAR(1000),
        status VARCHAR(20) NOT NULL DEFAULT 'draft',
        priority VARCHAR(20) NOT NULL DEFAULT 'medium',
        meeting_date TIMESTAMPTZ,
        tags JSONB NOT NULL DEFAULT '[]'::jsonb,
        created_by UUID,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT check_vault_status CHECK (status IN ('draft', 'active', 'archived', 'published')),
        CONSTRAINT check_vault_priority CHECK (priority IN ('low', 'medium', 'high', 'urgent'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vault_members (
        vault_id UUID NOT NULL REFERENCES vaults(vault_id) ON DELETE CASCADE,
        user_id UUID NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        role VARCHAR(20) NOT NULL DEFAULT 'viewer',
        added_by UUID,
        added_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (vault_id, user_id),
        CONSTRAINT check_vault_member_role CHECK (role IN ('owner', 'admin', 'editor', 'viewer'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vault_invitations (
        invitation_id UUID PRIMARY KEY,
        vault_id UUID NOT NULL REFERENCES vaults(vault_id) ON DELETE CASCADE,
        email VARCHAR(255) NOT NULL,
        role VARCHAR(20) NOT NULL DEFAULT 'viewer',
        token VARCHAR(128) UNIQUE NOT NULL,
        status VARCHAR(20) NOT NULL DEFAULT 'pending',
        message VARCHAR(500),
        invited_by UUID,
        expires_at TIMESTAMPTZ NOT NULL,
        accepted_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT check_vault_invitation_status CHECK (status IN ('pending', 'accepted', 'revoked'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS assets (
        asset_id UUID PRIMARY KEY,
        organization_id UUID NOT NULL REFERENCES organizations(organization_id) ON DELETE CASCADE,
        owner_id UUID NOT NULL REFERENCES users(user_id),
        title VARCHAR(255) NOT NULL,
        description TEXT,
        file_name VARCHAR(255) NOT NULL,
        file_path VARCHAR(1024) NOT NULL,
        file_size BIGINT NOT NULL,
        mime_type VARCHAR(255) NOT NULL,
        category VARCHAR(50) NOT NULL DEFAULT 'general',
        tags JSONB NOT NULL DEFAULT '[]'::jsonb,
        status VARCHAR(20) NOT NULL DEFAULT 'ready',
        view_count INT NOT NULL DEFAULT 0,
        download_count INT NOT NULL DEFAULT 0,
        last_accessed_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        deleted_at TIMESTAMPTZ,
        CONSTRAINT check_asset_status CHECK (status IN ('processing', 'ready', 'deleted'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vault_assets (
        vault_id UUID NOT NULL REFERENCES vaults(vault_id) ON DELETE CASCADE,
        asset_id UUID NOT NULL REFERENCES assets(asset_id) ON DELETE CASCADE,
        added_by UUID,
        added_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (vault_id, asset_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS asset_shares (
        asset_id UUID NOT NULL REFERENCES assets(asset_id) ON DELETE CASCADE,
        user_id UUID NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        permission VARCHAR(20) NOT NULL DEFAULT 'view',
        shared_by UUID,
        shared_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (asset_id, user_id),
        CONSTRAINT check_share_permission CHECK (permission IN ('view', 'download', 'edit'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS asset_annotations (
        annotation_id UUID PRIMARY KEY,
        asset_id UUID NOT NULL REFERENCES assets(asset_id) ON DELETE CASCADE,
        organization_id UUID NOT NULL REFERENCES organizations(organization_id) ON DELETE CASCADE,
        created_by UUID NOT NULL REFERENCES users(user_id),
        annotation_type VARCHAR(20) NOT NULL,
        page_number INT NOT NULL,
        position JSONB NOT NULL DEFAULT '{}'::jsonb,
        selected_text TEXT,
        comment_text TEXT,
        color VARCHAR(7) NOT NULL DEFAULT '#FFFF00',
        opacity NUMERIC(3, 2) NOT NULL DEFAULT 0.3,
        is_resolved BOOLEAN NOT NULL DEFAULT FALSE,
        resolved_by UUID,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT check_annotation_type CHECK (annotation_type IN ('highlight', 'comment', 'drawing', 'area')),
        CONSTRAINT check_page_number CHECK (page_number >= 1),
        CONSTRAINT check_opacity CHECK (opacity >= 0 AND opacity <= 1)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS annotation_replies (
        reply_id UUID PRIMARY KEY,
        annotation_id UUID NOT NULL REFERENCES asset_annotations(annotation_id) ON DELETE CASCADE,
        created_by UUID NOT NULL REFERENCES users(user_id),
        reply_text TEXT NOT NULL,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        notification_id UUID PRIMARY KEY,
        user_id UUID NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        organization_id UUID REFERENCES organizations(organization_id) ON DELETE CASCADE,
        type VARCHAR(50) NOT NULL,
        title VARCHAR(255) NOT NULL,
        message TEXT,
        priority VARCHAR(10) NOT NULL DEFAULT 'medium',
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
        read_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT check_notification_priority CHECK (priority IN ('low', 'medium', 'high', 'urgent'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS activity_logs (
        log_id UUID PRIMARY KEY,
        organization_id UUID,
        user_id UUID,
        action VARCHAR(100) NOT NULL,
        entity_type VARCHAR(50),
        entity_id VARCHAR(100),
        details JSONB NOT NULL DEFAULT '{}'::jsonb,
        performed_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_request_logs (
        request_log_id BIGSERIAL PRIMARY KEY,
        request_id VARCHAR(100),
        request_path VARCHAR(500) NOT NULL,
        request_method VARCHAR(10) NOT NULL,
        start_time TIMESTAMPTZ NOT NULL,
        duration_seconds NUMERIC(12, 6),
        request_payload JSONB,
        response_status INT,
        success BOOLEAN,
        error_message TEXT,
        user_id VARCHAR(100),
        client_ip VARCHAR(100),
        user_agent TEXT
    )
    """,
]

INDEX_STATEMENTS: List[str] = [
    "CREATE INDEX IF NOT EXISTS idx_registration_status ON registration_requests(status, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_otp_email ON otp_codes(email, purpose)",
    "CREATE INDEX IF NOT EXISTS idx_org_members_user ON organization_members(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_org_invitations_org ON organization_invitations(organization_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_boards_org ON boards(organization_id)",
    "CREATE INDEX IF NOT EXISTS idx_board_members_board ON board_members(board_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_meetings_org_start ON meetings(organization_id, scheduled_start)",
    "CREATE INDEX IF NOT EXISTS idx_meetings_board ON meetings(board_id)",
    "CREATE INDEX IF NOT EXISTS idx_resolutions_meeting ON resolutions(meeting_id)",
    "CREATE INDEX IF NOT EXISTS idx_vaults_org ON vaults(organization_id)",
    "CREATE INDEX IF NOT EXISTS idx_vault_members_user ON vault_members(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_assets_org ON assets(organization_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_assets_owner ON assets(owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_annotations_asset ON asset_annotations(asset_id, page_number)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, created_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_activity_org ON activity_logs(organization_id, performed_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_request_logs_start ON api_request_logs(start_time DESC)",
]


class SchemaManager:
    """Creates and verifies the application schema."""

    @staticmethod
    def initialize_schema() -> bool:
        """
        Create all tables and indexes if they do not exist.

        Returns:
            True when the schema is in place

        Raises:
            DatabaseException: If any statement fails
        """
        db_manager = get_db_manager()

        try:
            with db_manager.get_connection() as conn:
                cursor = conn.cursor()
                try:
                    for statement in TABLE_STATEMENTS:
                        cursor.execute(statement)
                    for statement in INDEX_STATEMENTS:
                        cursor.execute(statement)
                finally:
                    cursor.close()

            logger.info(f"Schema initialized: {len(TABLE_STATEMENTS)} tables, {len(INDEX_STATEMENTS)} indexes")
            return True

        except DatabaseException:
            raise
        except Exception as e:
            logger.error(f"Schema initialization failed: {str(e)}")
            raise DatabaseException(f"Schema initialization failed: {str(e)}")
