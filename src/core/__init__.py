"""Core domain package for httpbackup.

Core contains the scheduling, fetching, and archive-writing logic without
any config-file or UI code, keeping the backup engine portable.
"""
