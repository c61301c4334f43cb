"""Framework plumbing shared by every module."""
