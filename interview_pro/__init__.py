"""Interview Pro: job-description analysis and mock-interview practice API."""
