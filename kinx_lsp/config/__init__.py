from kinx_lsp.config.settings import KinxSettings, get_settings

__all__ = [
    "KinxSettings",
    "get_settings",
]
