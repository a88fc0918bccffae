"""
System Information Gathering Module for WAYFINDER

This module contains functions for gathering system information and
extraction details for forensic reporting.
"""

import os
import sys
import shutil
import socket
import locale
import platform
import logging
from datetime import datetime
from pathlib import Path

import psutil

from wayfinder import WAYFINDER_VERSION, WAYFINDER_BUILD_DATE
from wayfinder.core.artifacts import MODULE_NAME
from wayfinder.utils.file_operations import get_file_hash_safe

logger = logging.getLogger(__name__)


def get_system_info(input_path=None, output_file=None, execution_mode="CLI", decoder_registry=None):
    """Gather system and configuration information for reports"""
    logger.info("Gathering system information for report generation")

    output_dir = os.path.dirname(os.path.abspath(output_file)) if output_file else os.getcwd()

    system_info = {
        "wayfinder_version": WAYFINDER_VERSION,
        "wayfinder_build_date": WAYFINDER_BUILD_DATE,
        "parser_module": MODULE_NAME,
        "report_generated_on": datetime.now().isoformat(),
        "python_interpreter_version": sys.version,
        "python_interpreter_path": sys.executable,
        "operating_system": platform.system(),
        "os_release": platform.release(),
        "system_architecture": platform.machine(),
        "computer_hostname": platform.node(),
        "system_ram_available_total": get_system_ram(),
        "output_disk_space_available": get_disk_space(output_dir),
        "system_locale": get_system_locale(),
        "network_status": check_network_status(),
        "execution_mode": execution_mode,
    }

    if input_path:
        system_info["read_permissions_granted"] = "Granted" if os.access(input_path, os.R_OK) else "Denied"

    if execution_mode == "CLI":
        system_info["cli_arguments"] = " ".join(sys.argv)

    if decoder_registry:
        system_info["available_decoders"] = ", ".join(decoder_registry.get_decoder_names())

    logger.info("System information gathering completed successfully")
    return system_info


def get_system_ram():
    """Get total system RAM"""
    total_ram_gb = psutil.virtual_memory().total / (1024**3)
    logger.debug(f"System RAM (psutil): {total_ram_gb:.2f} GB")
    return f"{total_ram_gb:.2f} GB"


def get_disk_space(path):
    """Get available disk space for a given path"""
    try:
        free_gb = shutil.disk_usage(path).free / (1024**3)
        return f"{free_gb:.2f} GB"
    except OSError as e:
        logger.error(f"Error getting disk space for {path}: {e}")
        return "Unable to determine"


def get_system_locale():
    """Get system locale information"""
    try:
        current_locale = locale.getlocale()
        if current_locale[0]:
            return f"{current_locale[0]}.{current_locale[1]}"
        return "Default"
    except ValueError as e:
        logger.warning(f"Error getting system locale: {e}")
        return "Unknown"


def check_network_status():
    """Report whether a network interface with an address is configured"""
    try:
        hostname = socket.gethostname()
        local_ip = socket.gethostbyname(hostname)
        return f"Connected (Local IP: {local_ip})"
    except OSError:
        return "Disconnected or no network"


def get_extraction_info(input_path: str, output_file: str, scan_result, processing_time: float = None):
    """Generate extraction information for reports"""
    logger.info("Generating extraction information for report")

    failures = dict(scan_result.failed_files)
    input_files = []
    for file_path in scan_result.files_found:
        path = Path(file_path)
        input_files.append({
            "path": str(path.absolute()),
            "sha256_hash": get_file_hash_safe(file_path),
            "size_bytes": path.stat().st_size if path.exists() else 0,
            "status": f"Failed: {failures[file_path]}" if file_path in failures
                      else ("Processed" if file_path in scan_result.files_processed else "Not processed"),
        })

    return {
        "input_path": str(Path(input_path).absolute()),
        "output_file": str(Path(output_file).absolute()),
        "files_found": len(scan_result.files_found),
        "files_processed": len(scan_result.files_processed),
        "files_failed": len(scan_result.failed_files),
        "records_posted": scan_result.records_posted,
        "scan_cancelled": scan_result.cancelled,
        "scan_aborted": scan_result.aborted,
        "extraction_timestamp": datetime.now().isoformat(),
        "processing_time_seconds": round(processing_time, 3) if processing_time else 0,
        "input_files": input_files,
    }
