# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# Typed wrapper around the Supabase Python client. One service-role client is
# shared across the process (API and Celery workers) and exposed through
# classmethods for the lookups every service needs:
# - profiles and companies (who is calling, which company they act for)
# - opportunities
# - generic single-row fetch / insert / update helpers
# - storage upload and download
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   profile = SupabaseClient.fetch_profile(user.id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import ApplicationError, normalize_uuid

logger = logging.getLogger(__name__)

# PostgREST error code for ".single()" queries that match no rows
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(ApplicationError):
    """Error during Supabase operations."""

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Shared Supabase access for services and workers.

    All methods are classmethods over a lazily created singleton client.

    Example:
        company = SupabaseClient.fetch_company(profile["company_id"])
        if company is None:
            raise CompanyNotFoundError()
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses the service_role key, which bypasses Row Level Security.
        Every query in this codebase therefore scopes by company_id or
        user_id explicitly.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached client (tests swap in mocks via get_client)."""
        cls._instance = None

    # -------------------------------------------------------------------------
    # Generic Row Helpers
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_one(
        cls,
        table: str,
        columns: str = "*",
        **filters: str | UUID,
    ) -> dict[str, Any] | None:
        """
        Fetch a single row matching all equality filters.

        Args:
            table: Table name
            columns: PostgREST select expression
            **filters: column=value equality filters

        Returns:
            Row dict, or None when no row matches

        Raises:
            SupabaseClientError: If the query fails for any other reason

        Example:
            row = SupabaseClient.fetch_one("stripe_customers", company_id=cid)
        """
        client = cls.get_client()

        try:
            query = client.table(table).select(columns)
            for column, value in filters.items():
                query = query.eq(column, normalize_uuid(value))
            response = query.single().execute()
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_FAILED",
                suggestion=f"Check that the {table} table exists and the filter columns are correct",
                details={"table": table, "filters": {k: str(v) for k, v in filters.items()}}
            )

    @classmethod
    def insert(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert one row and return it.

        Raises:
            SupabaseClientError: If the insert fails or returns nothing
        """
        client = cls.get_client()

        try:
            response = client.table(table).insert(data).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert into {table}: {e}",
                code="INSERT_FAILED",
                details={"table": table}
            )

        if not response.data:
            raise SupabaseClientError(
                message=f"Insert into {table} returned no data",
                code="INSERT_FAILED",
                details={"table": table}
            )
        return response.data[0]

    @classmethod
    def update(
        cls,
        table: str,
        data: dict[str, Any],
        **filters: str | UUID,
    ) -> dict[str, Any] | None:
        """
        Update rows matching all equality filters.

        Returns:
            The first updated row, or None if nothing matched
        """
        client = cls.get_client()

        try:
            query = client.table(table).update(data)
            for column, value in filters.items():
                query = query.eq(column, normalize_uuid(value))
            response = query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update {table}: {e}",
                code="UPDATE_FAILED",
                details={"table": table, "fields": list(data.keys())}
            )

        return response.data[0] if response.data else None

    # -------------------------------------------------------------------------
    # Profiles & Companies
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch the profiles row for an auth user.

        Returns:
            Profile dict with keys such as id, email, full_name, role,
            company_id; None if the user never finished setup
        """
        return cls.fetch_one("profiles", id=user_id)

    @classmethod
    def fetch_company(cls, company_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a companies row by ID."""
        return cls.fetch_one("companies", id=company_id)

    @classmethod
    def fetch_opportunity(cls, opportunity_id: str | UUID) -> dict[str, Any] | None:
        """Fetch an opportunities row by ID."""
        return cls.fetch_one("opportunities", id=opportunity_id)

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    @classmethod
    def upload_file(
        cls,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """
        Upload bytes to a storage bucket, overwriting any existing object.

        Returns:
            The storage path

        Raises:
            SupabaseClientError: If the upload fails
        """
        client = cls.get_client()

        try:
            client.storage.from_(bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
            logger.info(f"Uploaded {len(content)} bytes to {bucket}/{path}")
            return path
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to upload file: {e}",
                code="STORAGE_UPLOAD_FAILED",
                suggestion=f"Check that the '{bucket}' bucket exists",
                details={"bucket": bucket, "path": path}
            )

    @classmethod
    def download_file(cls, bucket: str, path: str) -> bytes:
        """
        Download an object from a storage bucket.

        Raises:
            SupabaseClientError: If the object is missing or the download fails
        """
        client = cls.get_client()

        try:
            data = client.storage.from_(bucket).download(path)
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to download file: {e}",
                code="STORAGE_DOWNLOAD_FAILED",
                suggestion="Check that the file path exists in storage",
                details={"bucket": bucket, "path": path}
            )

        if not data:
            raise SupabaseClientError(
                message="Downloaded file is empty",
                code="STORAGE_DOWNLOAD_FAILED",
                details={"bucket": bucket, "path": path}
            )
        return data
