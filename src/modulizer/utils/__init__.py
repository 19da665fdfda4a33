"""
Modulizer utilities package
"""

from .io_utils import read_source_file, read_json_file, write_json_file, iter_files, write_results

__all__ = ["read_source_file", "read_json_file", "write_json_file", "iter_files", "write_results"]
