#!/usr/bin/env python3
"""
MCP Google Search Server
Serveur MCP pour recherche Google et analyse de pages web
"""

import asyncio
import contextlib
import json
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

# MCP Protocol imports
from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .config.settings import Settings
from .errors import ConfigurationError, FailureKind, ToolError, to_mcp_error
from .search.fetcher import ContentFetcher
from .search.google import GoogleSearchClient, SAFE_SEARCH_LEVELS

logger = logging.getLogger(__name__)

SEARCH_TOOL = "search"
ANALYZE_TOOL = "analyze_page"
BATCH_ANALYZE_TOOL = "batch_analyze_pages"


class GoogleSearchMCPServer:
    """Serveur MCP exposant la recherche Google et l'analyse de pages"""

    def __init__(self, settings: Settings, fetcher: Optional[ContentFetcher] = None,
                 search_client: Optional[GoogleSearchClient] = None):
        self.settings = settings
        config = settings.config

        # Initialisation des composants
        self.fetcher = fetcher or ContentFetcher(config.fetch)
        self.search_client = search_client or GoogleSearchClient(settings.load_credentials(), config.search)

        # Initialize MCP server
        self.server = Server(config.server_name)
        self._setup_handlers()

        self.is_connected = False
        self._shutdown_event: Optional[asyncio.Event] = None

        logger.info("Serveur MCP Google Search initialisé")
        if config.debug:
            logger.debug(f"Configuration: {settings.to_dict()}")

    def _setup_handlers(self):
        """Setup MCP protocol handlers"""

        @self.server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            return self.list_tools()

        # Registered by hand so McpError reaches the session with its code
        async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
            content = await self.call_tool(request.params.name, request.params.arguments)
            return types.ServerResult(types.CallToolResult(content=content, isError=False))

        self.server.request_handlers[types.CallToolRequest] = handle_call_tool

    def list_tools(self) -> List[types.Tool]:
        """List available tools"""
        return [
            types.Tool(
                name=SEARCH_TOOL,
                description="Perform a Google search",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Search query"},
                        "num_results": {"type": "number", "description": "Number of results (max 10)"},
                        "date_restrict": {"type": "string", "description": "Date restriction (e.g., d1, w2, m3, y1)"},
                        "language": {"type": "string", "description": "Language code (e.g., en, ja)"},
                        "country": {"type": "string", "description": "Country code (e.g., us, jp)"},
                        "safe_search": {"type": "string", "enum": list(SAFE_SEARCH_LEVELS)}
                    },
                    "required": ["query"]
                }
            ),
            types.Tool(
                name=ANALYZE_TOOL,
                description="Analyze the content of a webpage",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "url": {"type": "string", "description": "URL of the webpage to analyze"}
                    },
                    "required": ["url"]
                }
            ),
            types.Tool(
                name=BATCH_ANALYZE_TOOL,
                description="Analyze the content of several webpages",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "urls": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "URLs of the webpages to analyze"
                        }
                    },
                    "required": ["urls"]
                }
            ),
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        """
        Route a tool call

        Failures are raised as McpError; the session sends them back as a
        JSON-RPC error carrying the code and {"kind": ...} data.
        """
        arguments = arguments or {}

        try:
            if name == SEARCH_TOOL:
                result = await self._search(arguments)
            elif name == ANALYZE_TOOL:
                result = await self._analyze_page(arguments)
            elif name == BATCH_ANALYZE_TOOL:
                result = await self._batch_analyze(arguments)
            else:
                raise ToolError(FailureKind.INVALID_ARGUMENT, f"Unknown tool: {name}")
        except ToolError as e:
            logger.warning(f"Tool '{name}' failed ({e.kind.value}): {e.message}")
            raise to_mcp_error(e) from e
        except Exception as e:
            logger.error(f"Erreur inattendue dans '{name}': {e}", exc_info=True)
            raise to_mcp_error(e) from e

        return [types.TextContent(
            type="text",
            text=json.dumps(result, indent=2, ensure_ascii=False)
        )]

    async def _search(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Execute a Google search"""
        query = _require_string(args, "query")

        num_results = args.get("num_results", 10)
        if isinstance(num_results, bool) or not isinstance(num_results, (int, float)):
            raise ToolError(FailureKind.INVALID_ARGUMENT, "num_results must be a number")

        options = {key: _optional_string(args, key)
                   for key in ("date_restrict", "language", "country", "safe_search")}

        results = await self.search_client.search(query, int(num_results), **options)
        return [result.to_dict() for result in results]

    async def _analyze_page(self, args: Dict[str, Any]) -> Dict[str, Any]:
        url = _require_string(args, "url")
        analysis = await self.fetcher.analyze(url)
        logger.debug(f"First 500 characters: {analysis.text[:500]}")
        return analysis.to_dict()

    async def _batch_analyze(self, args: Dict[str, Any]) -> Dict[str, Any]:
        urls = args.get("urls")
        if not isinstance(urls, list) or not urls or not all(isinstance(url, str) for url in urls):
            raise ToolError(FailureKind.INVALID_ARGUMENT, "urls must be a non-empty list of strings")
        return {"results": await self.fetcher.batch_analyze(urls)}

    def request_shutdown(self, reason: str = "request"):
        """Déclenche un arrêt propre"""
        logger.info(f"Arrêt demandé ({reason})")
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    async def _watch_connection(self, protocol_task: asyncio.Task):
        """Periodic liveness check of the transport"""
        interval = self.settings.config.liveness_interval
        while True:
            await asyncio.sleep(interval)
            if protocol_task.done() or sys.stdin is None or sys.stdin.closed:
                self.is_connected = False
            if not self.is_connected:
                logger.error("MCP connection lost")
                return

    async def run_server(self):
        """Run the MCP server until shutdown or connection loss"""
        logger.info("Starting MCP Google Search Server...")

        loop = asyncio.get_running_loop()
        self._shutdown_event = asyncio.Event()
        for sig in (signal.SIGINT, signal.SIGTERM):
            # add_signal_handler is not available on Windows event loops
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, self.request_shutdown, sig.name)

        async with stdio_server() as (read_stream, write_stream):
            self.is_connected = True
            logger.info("Google Search MCP server started and connected")

            protocol_task = asyncio.create_task(
                self.server.run(read_stream, write_stream, self.server.create_initialization_options())
            )
            liveness_task = asyncio.create_task(self._watch_connection(protocol_task))
            shutdown_task = asyncio.create_task(self._shutdown_event.wait())

            done, pending = await asyncio.wait(
                {protocol_task, liveness_task, shutdown_task},
                return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

            self.is_connected = False
            if protocol_task in done and not protocol_task.cancelled() and protocol_task.exception() is not None:
                logger.error("Erreur de protocole irrécupérable", exc_info=protocol_task.exception())

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)

        logger.info("Shutting down gracefully...")

    async def cleanup(self):
        """Nettoyage des ressources"""
        logger.info("Nettoyage des ressources...")
        await self.fetcher.close()
        await self.search_client.close()
        logger.info("Nettoyage terminé")


def _require_string(args: Dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolError(FailureKind.INVALID_ARGUMENT, f"'{key}' is required and must be a non-empty string")
    return value.strip()


def _optional_string(args: Dict[str, Any], key: str) -> Optional[str]:
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ToolError(FailureKind.INVALID_ARGUMENT, f"'{key}' must be a string")
    return value or None


# Fonction principale pour interface en ligne de commande
async def main(settings: Optional[Settings] = None):
    """Point d'entrée principal du serveur"""
    settings = settings or Settings()
    settings.setup_logging()

    # Validation de la configuration
    if not settings.validate_config():
        logger.error("Configuration invalide, arrêt du serveur")
        sys.exit(1)

    try:
        search_service = GoogleSearchMCPServer(settings)
    except ConfigurationError as e:
        logger.error(f"Failed to load settings: {e}")
        sys.exit(1)

    try:
        await search_service.run_server()
    except Exception as e:
        logger.error(f"Erreur fatale: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await search_service.cleanup()


def run():
    """Console entry point; SERVER_MODE=http starts the HTTP analyze API instead"""
    settings = Settings()
    if settings.config.server_mode == "http":
        from .server import run_http_server
        run_http_server(settings)
    else:
        asyncio.run(main(settings))


if __name__ == "__main__":
    run()
