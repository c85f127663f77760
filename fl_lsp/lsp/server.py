"""
fl-lsp language server.

Wires the document lifecycle manager, settings cache and diagnostic publisher
into a pygls LanguageServer and registers the LSP features the editor uses.
"""

import logging
import os
import uuid
from typing import Any, List, Optional

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path

from .. import __version__
from ..analysis.engine import EngineClient
from ..core.constants import CONFIG_SECTION, PROJECT_CONFIG_FILE, SERVER_NAME
from .documents import DocumentManager
from .publisher import DiagnosticPublisher
from .settings import SettingsCache

# Configure logging
logger = logging.getLogger(__name__)


class FlLanguageServer(LanguageServer):
    """Language server publishing cargo-fl diagnostics for Rust documents."""

    def __init__(self, engine: Optional[EngineClient] = None):
        super().__init__(
            SERVER_NAME,
            __version__,
            text_document_sync_kind=lsp.TextDocumentSyncKind.Incremental,
        )
        self.engine = engine or EngineClient()
        self.settings_cache = SettingsCache()
        self.publisher = DiagnosticPublisher(self.text_document_publish_diagnostics)
        self.manager = DocumentManager(self.engine, self.publisher, self.settings_cache)

    async def fetch_settings(self, uri: str) -> Any:
        """Request the cargoFl section for one document from the client."""
        result = await self.workspace_configuration_async(
            lsp.ConfigurationParams(
                items=[lsp.ConfigurationItem(scope_uri=uri, section=CONFIG_SECTION)]
            )
        )
        return result[0] if result else None

    def log_to_client(self, message: str, level: lsp.MessageType = lsp.MessageType.Info) -> None:
        self.window_log_message(lsp.LogMessageParams(type=level, message=message))


def _workspace_root(params: lsp.InitializeParams) -> Optional[str]:
    if params.workspace_folders:
        return to_fs_path(params.workspace_folders[0].uri)
    if params.root_uri:
        return to_fs_path(params.root_uri)
    return params.root_path


def _quick_fixes(uri: str, diagnostics: List[lsp.Diagnostic]) -> List[lsp.CodeAction]:
    actions = []
    for diagnostic in diagnostics:
        data = diagnostic.data if isinstance(diagnostic.data, dict) else {}
        fix = data.get("fix")
        if not isinstance(fix, dict) or not isinstance(fix.get("newText"), str):
            continue
        actions.append(
            lsp.CodeAction(
                title=f"Fix: {fix.get('description') or diagnostic.message}",
                kind=lsp.CodeActionKind.QuickFix,
                diagnostics=[diagnostic],
                edit=lsp.WorkspaceEdit(
                    changes={uri: [lsp.TextEdit(range=diagnostic.range, new_text=fix["newText"])]}
                ),
                is_preferred=True,
            )
        )
    return actions


def create_server(engine: Optional[EngineClient] = None) -> FlLanguageServer:
    """
    Create a language server with all features registered.

    Args:
        engine: Engine client to use; by default one probing the workspace root is created

    Returns:
        The configured server, ready for start_io() or start_tcp()
    """
    server = FlLanguageServer(engine)

    @server.feature(lsp.INITIALIZE)
    def initialize(ls: FlLanguageServer, params: lsp.InitializeParams):
        capabilities = params.capabilities
        workspace = capabilities.workspace
        if workspace is not None and workspace.configuration:
            ls.settings_cache.enable_scoped(ls.fetch_settings)

        text_document = capabilities.text_document
        publish = text_document.publish_diagnostics if text_document else None
        ls.manager.related_support = bool(publish and publish.related_information)

        if params.initialization_options:
            ls.settings_cache.update_global(params.initialization_options)

        root = _workspace_root(params)
        if root and engine is None:
            ls.engine.project_root = root

        logger.info(
            f"Initialized for {root or os.getcwd()} "
            f"(scoped settings: {ls.settings_cache.supports_scoped}, "
            f"related information: {ls.manager.related_support})"
        )

    @server.feature(lsp.INITIALIZED)
    async def initialized(ls: FlLanguageServer, params: lsp.InitializedParams):
        if ls.settings_cache.supports_scoped:
            try:
                await ls.client_register_capability_async(
                    lsp.RegistrationParams(
                        registrations=[
                            lsp.Registration(
                                id=str(uuid.uuid4()),
                                method=lsp.WORKSPACE_DID_CHANGE_CONFIGURATION,
                            )
                        ]
                    )
                )
            except Exception as e:
                logger.warning(f"Could not register for configuration changes: {e}")
        ls.log_to_client(f"{SERVER_NAME} {__version__} initialized")

    @server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
    def did_open(ls: FlLanguageServer, params: lsp.DidOpenTextDocumentParams):
        td = params.text_document
        ls.manager.open(td.uri, td.version, td.text)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(ls: FlLanguageServer, params: lsp.DidChangeTextDocumentParams):
        uri = params.text_document.uri
        # pygls has already applied the (possibly incremental) changes
        document = ls.workspace.get_text_document(uri)
        ls.manager.change(uri, params.text_document.version, document.source)

    @server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
    def did_save(ls: FlLanguageServer, params: lsp.DidSaveTextDocumentParams):
        ls.manager.save(params.text_document.uri, params.text)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(ls: FlLanguageServer, params: lsp.DidCloseTextDocumentParams):
        ls.manager.close(params.text_document.uri)

    @server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
    def did_change_configuration(
        ls: FlLanguageServer, params: lsp.DidChangeConfigurationParams
    ):
        if ls.settings_cache.supports_scoped:
            ls.settings_cache.invalidate()
        else:
            settings = params.settings if isinstance(params.settings, dict) else {}
            ls.settings_cache.update_global(settings.get(CONFIG_SECTION))
        ls.manager.refresh_all()

    @server.feature(lsp.WORKSPACE_DID_CHANGE_WATCHED_FILES)
    def did_change_watched_files(
        ls: FlLanguageServer, params: lsp.DidChangeWatchedFilesParams
    ):
        if any(change.uri.endswith(PROJECT_CONFIG_FILE) for change in params.changes):
            logger.info(f"{PROJECT_CONFIG_FILE} changed; re-analyzing open documents")
            ls.manager.refresh_all()

    @server.feature(
        lsp.TEXT_DOCUMENT_CODE_ACTION,
        lsp.CodeActionOptions(code_action_kinds=[lsp.CodeActionKind.QuickFix]),
    )
    def code_action(ls: FlLanguageServer, params: lsp.CodeActionParams):
        return _quick_fixes(params.text_document.uri, params.context.diagnostics)

    @server.feature(lsp.SHUTDOWN)
    async def shutdown(ls: FlLanguageServer, params: None):
        await ls.manager.drain()
        ls.manager.shutdown()
        logger.info("Server shut down")

    return server
