from docvault.runtime.runner import check_tools, ensure_database, main, print_paths, resolved_paths, run_server

__all__ = [
    "check_tools",
    "ensure_database",
    "main",
    "print_paths",
    "resolved_paths",
    "run_server",
]
