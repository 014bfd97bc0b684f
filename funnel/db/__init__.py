# =============================================================================
# Database Package
# =============================================================================
# MongoDB document store and GridFS blob store.
#
# Key exports:
#   - MongoConnection: lifespan-managed client holding both stores
#   - FileRecordRepository, FileStatus: the `csv_files` collection
#   - BlobStore: the GridFS bucket holding downloadable CSVs
# =============================================================================
