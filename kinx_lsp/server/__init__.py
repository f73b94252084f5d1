"""LSP server (pygls)"""

from .language_server import KinxLanguageServer, create_server, serve

__all__ = ["KinxLanguageServer", "create_server", "serve"]
