"""Redis Inspect MCP server implementation."""

import logging
import sys
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP
from pydantic import BaseModel, Field

from .config.settings import RedisSettings
from .connection.manager import RedisConnectionManager
from .models import ScanState, ScanStatus
from .tools.exporter import KeyExporter
from .tools.importer import KeyImporter
from .tools.inspector import KeyInspector
from .tools.scanner import KeyScanner, ScanError
from .utils.helpers import format_bytes, safe_json_serialize

logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = FastMCP("Redis Inspect Server")

# Created on first use; they hold configuration only, never a connection
_settings: Optional[RedisSettings] = None
_connection_manager: Optional[RedisConnectionManager] = None


def get_connection_manager() -> RedisConnectionManager:
    """Get or create the Redis connection manager."""
    global _connection_manager, _settings

    if _connection_manager is None:
        if _settings is None:
            _settings = RedisSettings()
        _connection_manager = RedisConnectionManager(_settings)

    return _connection_manager


def get_tools() -> tuple:
    """Build the tool instances for one request."""
    connection_manager = get_connection_manager()
    return (
        KeyScanner(connection_manager, _settings),
        KeyInspector(connection_manager, _settings),
        KeyExporter(connection_manager, _settings),
        KeyImporter(connection_manager, _settings),
    )


# Pydantic models for tool parameters
class ListKeysParams(BaseModel):
    """Parameters for list_keys tool."""
    cursor: int = Field(default=0, ge=0, description="Cursor to resume from (0 starts a new scan)")
    pattern: str = Field(default="*", description="Key pattern to match (e.g., 'user:*')")
    max_keys: Optional[int] = Field(default=None, ge=0, description="Stop after this many keys (0 = no cap)")
    status: ScanStatus = Field(
        default=ScanStatus.NOT_STARTED,
        description="Status returned by the previous page; 'complete' returns no keys instead of starting over"
    )

    def to_state(self) -> ScanState:
        return ScanState(cursor=self.cursor, pattern=self.pattern, limit=self.max_keys, status=self.status)


class DisplayContentParams(BaseModel):
    """Parameters for display_content tool."""
    key: str = Field(description="Redis key to inspect")
    max_content_check: bool = Field(default=True, description="Skip string values above the size limit")
    raw: bool = Field(default=False, description="Return string values without formatting")


class ExportKeysParams(BaseModel):
    """Parameters for export_keys tool."""
    keys: str = Field(description="JSON array of key names")
    export_type: str = Field(default="JSON", description="'Redis' for commands, 'JSON' for a value tree")


class NewKeyParams(BaseModel):
    """Parameters for new_key tool."""
    key_type: str = Field(description="string, hash, list, set or zset")
    key: str = Field(description="Key to create (replaces any existing value)")
    ttl: str = Field(default="", description="Duration such as '10s' or '5m'; '' or '-1s' for no expiry")
    value: str = Field(description="JSON payload shaped for the key type")


class DeleteKeysParams(BaseModel):
    """Parameters for delete_keys tool."""
    keys: List[str] = Field(description="Keys to delete")


def list_keys_page(scanner: KeyScanner, params: ListKeysParams) -> Dict[str, Any]:
    """Run one listing page and shape it for the client."""
    result = scanner.resume(params.to_state())

    return safe_json_serialize({
        "keys": [
            {"key": record.key, "type": record.type, "len": record.length}
            for record in result.records
        ],
        "cursor": result.cursor,
        "status": result.status
    })


# MCP Tools
@mcp.tool()
def get_redis_info() -> Dict[str, Any]:
    """Get Redis server information."""
    try:
        info = get_connection_manager().get_info()
        return safe_json_serialize(info)
    except Exception as e:
        logger.error(f"Failed to get Redis info: {e}")
        return {"status": "error", "error": str(e)}


@mcp.tool()
def get_database_count() -> Dict[str, Any]:
    """Get the number of logical databases configured on the server."""
    return {"databases": get_connection_manager().get_database_count()}


@mcp.tool()
def list_keys(params: ListKeysParams) -> Dict[str, Any]:
    """List keys page by page with their type and length."""
    try:
        scanner, _, _, _ = get_tools()
        return list_keys_page(scanner, params)
    except ScanError as e:
        logger.error(f"Key listing failed: {e}")
        return {"error": str(e), "cursor": e.cursor}
    except Exception as e:
        logger.error(f"Key listing failed: {e}")
        return {"error": str(e)}


@mcp.tool()
def display_content(params: DisplayContentParams) -> Dict[str, Any]:
    """Show a key's content, TTL, encoding and size."""
    try:
        _, inspector, _, _ = get_tools()

        result = inspector.display_content(
            params.key,
            max_content_check=params.max_content_check,
            raw=params.raw,
            max_content_size=_settings.max_content_size
        )

        return safe_json_serialize(result)
    except Exception as e:
        logger.error(f"Failed to display key '{params.key}': {e}")
        return {"error": str(e)}


@mcp.tool()
def export_keys(params: ExportKeysParams) -> Dict[str, Any]:
    """Export keys as Redis commands or as a JSON tree."""
    try:
        _, _, exporter, _ = get_tools()

        exported = exporter.export_keys(params.keys, params.export_type)

        return safe_json_serialize({"export_type": params.export_type, "result": exported})
    except ValueError as e:
        # Malformed key list or unknown export type
        return {"error": str(e)}
    except Exception as e:
        logger.error(f"Export failed: {e}")
        return {"error": str(e)}


@mcp.tool()
def new_key(params: NewKeyParams) -> Dict[str, Any]:
    """Create a key from a JSON payload, replacing any existing value."""
    _, _, _, importer = get_tools()

    result = importer.new_key(params.key_type, params.key, params.ttl, params.value)

    return safe_json_serialize({
        "success": result.success,
        "message": result.message,
        "kind": result.kind
    })


@mcp.tool()
def delete_keys(params: DeleteKeysParams) -> Dict[str, Any]:
    """Delete keys; keys that do not exist are ignored."""
    _, _, _, importer = get_tools()

    result = importer.delete_keys(params.keys)

    return safe_json_serialize({
        "success": result.success,
        "message": result.message,
        "kind": result.kind,
        "deleted": result.details.get("deleted")
    })


def main():
    """Main entry point for the MCP server."""
    global _settings

    try:
        _settings = RedisSettings()
        logging.basicConfig(level=_settings.log_level.upper())

        logger.info("Starting Redis Inspect Server...")
        logger.info(f"Redis Mode: {_settings.redis_mode.value}")
        logger.info(f"Max Content Size: {format_bytes(_settings.max_content_size)}")

        if not get_connection_manager().ping():
            logger.warning("Redis is not reachable yet; tools will retry per call")

        mcp.run()

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server failed to start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
