"""
Configuration management for the ledger.
"""
import json
import os
from dataclasses import dataclass, asdict, field

from bitfrac.oracle import DEFAULT_PRICE_MAX_AGE


@dataclass
class LedgerConfig:
    """Ledger configuration."""
    chain_id: int = 1
    admin_address: str = ""          # hex, 20 bytes
    strict_oracles: bool = False
    price_max_age: int = DEFAULT_PRICE_MAX_AGE  # blocks

    @property
    def admin_address_bytes(self) -> bytes:
        return bytes.fromhex(self.admin_address)


@dataclass
class DatabaseConfig:
    """Database configuration."""
    path: str = "./bitfrac_data"
    write_buffer_size: int = 64 * 1024 * 1024  # 64MB
    max_open_files: int = 1000
    compression: str = "snappy"


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 9090


@dataclass
class Config:
    """Main configuration."""
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def default(cls) -> 'Config':
        """Create default configuration."""
        return cls(
            ledger=LedgerConfig(),
            database=DatabaseConfig(),
            monitoring=MonitoringConfig()
        )

    @classmethod
    def from_file(cls, path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)

        return cls(
            ledger=LedgerConfig(**data.get('ledger', {})),
            database=DatabaseConfig(**data.get('database', {})),
            monitoring=MonitoringConfig(**data.get('monitoring', {}))
        )

    def to_file(self, path: str):
        """Save configuration to JSON file."""
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'ledger': asdict(self.ledger),
            'database': asdict(self.database),
            'monitoring': asdict(self.monitoring)
        }
