from kinx_lsp.cli import app

app(prog_name="kinx-lsp")
