from features.filesystem.listing import DirectoryListingError, list_directory

__all__ = ["DirectoryListingError", "list_directory"]
