"""Core building blocks: path derivation, languages, the downloader wrapper."""
