"""Study-notes preparation for ORAH: chunking, summarization and merging."""
