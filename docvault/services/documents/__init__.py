"""
Versioned document operations (upload/versions/preview/download/delete).

- file_sniffer: content-based type detection for uploads
- version_ledger: version numbering and "current" bookkeeping per logical name
- document_manager: the single entrypoint used by the HTTP routers (`DocumentManager`)
"""
