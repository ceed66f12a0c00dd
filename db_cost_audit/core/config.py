"""Configuration management for the database cost audit CLI."""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from db_cost_audit.core.exceptions import ConfigurationError


SUPPORTED_RESOURCE_KINDS = ("dynamodb", "rds")


class AuditConfig(BaseModel):
    """Configuration model for an audit run.

    Every value has a documented default so an audit can run without a
    configuration file. CLI options override stored values per run.
    """

    region: str = Field(default="us-west-2", description="AWS region to audit")
    window_days: int = Field(default=14, ge=1, le=455, description="Metric look-back window in days")
    max_workers: int = Field(default=10, ge=1, le=64, description="Concurrent per-resource fetches")
    output_dir: Path = Field(default=Path("data"), description="Directory for snapshots and reports")
    report_name: str = Field(default="cost_analysis", description="Report file name without extension")
    resource_kinds: List[str] = Field(
        default_factory=lambda: list(SUPPORTED_RESOURCE_KINDS),
        description="Resource kinds to collect",
    )
    iam_role_arn: Optional[str] = Field(default=None, description="Optional IAM role to assume")
    profile_name: Optional[str] = Field(default=None, description="Optional AWS shared-credentials profile")
    read_unit_hour_rate: Optional[float] = Field(default=None, ge=0, description="Override $ per read unit-hour")
    write_unit_hour_rate: Optional[float] = Field(default=None, ge=0, description="Override $ per write unit-hour")
    storage_gb_month_rate: Optional[float] = Field(default=None, ge=0, description="Override $ per GB-month")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Configuration creation timestamp")
    version: str = Field(default="1.0.0", description="Configuration version")

    @field_validator('region')
    @classmethod
    def validate_region(cls, v: str) -> str:
        """Validate AWS region format."""
        region_pattern = r'^[a-z]{2,3}-[a-z]+-\d$'
        if not re.match(region_pattern, v):
            raise ValueError(
                f"Invalid AWS region format: {v}. "
                "Expected format: us-east-1, eu-west-1, ap-southeast-3, etc."
            )
        return v

    @field_validator('iam_role_arn')
    @classmethod
    def validate_iam_role_arn(cls, v: Optional[str]) -> Optional[str]:
        """Validate IAM role ARN format when one is given."""
        if v is None:
            return v
        arn_pattern = r'^arn:aws:iam::\d{12}:role/[a-zA-Z0-9+=,.@_/-]+$'
        if not re.match(arn_pattern, v):
            raise ValueError(
                f"Invalid IAM role ARN format: {v}. "
                "Expected format: arn:aws:iam::123456789012:role/RoleName"
            )
        return v

    @field_validator('resource_kinds')
    @classmethod
    def validate_resource_kinds(cls, v: List[str]) -> List[str]:
        """Validate that every requested kind is supported."""
        if not v:
            raise ValueError("At least one resource kind is required")
        unknown = [kind for kind in v if kind not in SUPPORTED_RESOURCE_KINDS]
        if unknown:
            raise ValueError(
                f"Unsupported resource kinds: {', '.join(unknown)}. "
                f"Supported: {', '.join(SUPPORTED_RESOURCE_KINDS)}"
            )
        # Preserve order, drop duplicates
        return list(dict.fromkeys(v))

    @field_validator('report_name')
    @classmethod
    def validate_report_name(cls, v: str) -> str:
        """Report names become file names, so no path separators."""
        if not v or '/' in v or '\\' in v:
            raise ValueError(f"Invalid report name: {v!r}")
        return v

    @property
    def snapshots_path(self) -> Path:
        """Default location of the persisted snapshot collection."""
        return self.output_dir / "snapshots.json"


class ConfigManager:
    """Manages the local configuration file for the cost audit CLI."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_dir: Optional custom configuration directory path.
                       Defaults to ~/.db-cost-audit/
        """
        if config_dir is None:
            config_dir = Path.home() / ".db-cost-audit"

        self.config_dir = config_dir
        self.config_file = config_dir / "config.json"

    def load_config(self) -> AuditConfig:
        """Load configuration from file, falling back to defaults.

        Returns:
            Stored AuditConfig, or a default AuditConfig if no file exists.

        Raises:
            ConfigurationError: If the configuration file is corrupted or invalid.
        """
        if not self.config_file.exists():
            return AuditConfig()

        try:
            with open(self.config_file, 'r') as f:
                config_data = json.load(f)

            if not isinstance(config_data, dict):
                raise ConfigurationError(
                    f"Invalid configuration file {self.config_file}: expected a JSON object, "
                    f"got {type(config_data).__name__}"
                )

            if isinstance(config_data.get('created_at'), str):
                dt_str = config_data['created_at'].replace('Z', '+00:00')
                config_data['created_at'] = datetime.fromisoformat(dt_str).replace(tzinfo=None)

            return AuditConfig(**config_data)

        except (json.JSONDecodeError, ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid configuration file {self.config_file}: {e}", details=str(e))

    def save_config(self, config: AuditConfig) -> None:
        """Save configuration to file.

        Args:
            config: Configuration object to save.

        Raises:
            ConfigurationError: If unable to write configuration file.
        """
        temp_file = self.config_file.with_suffix('.tmp')
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)

            config_dict = config.model_dump(mode='json')
            config_dict['created_at'] = config.created_at.isoformat() + 'Z'

            # Write atomically by writing to temp file first
            with open(temp_file, 'w') as f:
                json.dump(config_dict, f, indent=2)

            temp_file.replace(self.config_file)

        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise ConfigurationError(f"Failed to save configuration: {e}", details=str(e))

    def config_exists(self) -> bool:
        """Check if configuration file exists."""
        return self.config_file.exists()

    def get_config_path(self) -> Path:
        """Get the configuration file path."""
        return self.config_file

    def delete_config(self) -> None:
        """Delete the configuration file.

        Raises:
            ConfigurationError: If unable to delete configuration file.
        """
        if self.config_file.exists():
            try:
                self.config_file.unlink()
            except OSError as e:
                raise ConfigurationError(f"Failed to delete configuration: {e}")
