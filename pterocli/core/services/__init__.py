"""Application services exposed to panel operation handlers."""
