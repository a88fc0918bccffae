"""
File Operations Module for WAYFINDER

This module contains functions for file hashing, path validation and the
report writers used to export AlpineQuest artifacts.
"""

import os
import csv
import json
import hashlib
import logging
from datetime import datetime, timezone
from typing import List, Optional
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from wayfinder import WAYFINDER_VERSION
from wayfinder.core.artifacts import AreaRecord, BookmarkRecord, RouteRecord, TrackRecord

logger = logging.getLogger(__name__)

# Maximum file size (in GB) accepted for single file input
MAX_FILE_SIZE_GB = 2

EXPORT_FORMATS = ("xlsx", "csv", "json", "geojson", "kml")

REPORT_HEADERS = [
    "Record Type", "Name", "Point Index", "Point Name", "Latitude", "Longitude",
    "Elevation (m)", "Timestamp (UTC)", "Source File", "Program",
]


def format_timestamp(timestamp: Optional[int]) -> str:
    """Convert epoch seconds to a UTC string, or '' if absent or out of range"""
    if timestamp is None:
        return ""
    try:
        dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
        return dt.strftime('%Y-%m-%d %H:%M:%S')
    except (ValueError, OSError, OverflowError):
        logger.warning(f"Invalid Unix timestamp: {timestamp}")
        return ""


def records_to_rows(records: List) -> List[list]:
    """Flatten artifact records into report rows, one row per point"""
    rows = []
    for record in records:
        if isinstance(record, BookmarkRecord):
            rows.append(["Bookmark", record.name or "", "", "", record.latitude, record.longitude,
                         record.elevation, format_timestamp(record.timestamp), record.source or "",
                         record.program_name])
        elif isinstance(record, (TrackRecord, AreaRecord)):
            record_type = "Track" if isinstance(record, TrackRecord) else "Area"
            for i, point in enumerate(record.points, 1):
                rows.append([record_type, record.name or "", i, "", point.latitude, point.longitude,
                             point.elevation, format_timestamp(point.timestamp), record.source or "",
                             record.program_name])
        elif isinstance(record, RouteRecord):
            route_time = format_timestamp(record.timestamp)
            for i, waypoint in enumerate(record.waypoints, 1):
                rows.append(["Route", record.name or "", i, waypoint.name or "", waypoint.latitude,
                             waypoint.longitude, waypoint.elevation, route_time, record.source or "",
                             record.program_name])
        else:
            logger.warning(f"Skipping unknown record type: {type(record).__name__}")
    return rows


def record_to_dict(record) -> dict:
    """Convert a record to a JSON-friendly dict"""
    data = {"record_type": record.kind, "name": record.name, "source": record.source,
            "program_name": record.program_name}
    if isinstance(record, BookmarkRecord):
        data.update({
            "latitude": record.latitude,
            "longitude": record.longitude,
            "elevation": record.elevation,
            "timestamp": record.timestamp,
            "timestamp_utc": format_timestamp(record.timestamp),
        })
    elif isinstance(record, RouteRecord):
        data["timestamp"] = record.timestamp
        data["timestamp_utc"] = format_timestamp(record.timestamp)
        data["waypoints"] = [
            {"latitude": w.latitude, "longitude": w.longitude, "elevation": w.elevation, "name": w.name}
            for w in record.waypoints
        ]
    else:
        data["points"] = [
            {"latitude": p.latitude, "longitude": p.longitude, "elevation": p.elevation,
             "timestamp": p.timestamp, "timestamp_utc": format_timestamp(p.timestamp)}
            for p in record.points
        ]
    return data


def sanitize_filename(filename):
    """Sanitize filename to prevent path traversal attacks"""
    logger.debug(f"Sanitizing filename: {filename}")

    # Remove directory separators and other potentially dangerous characters
    dangerous_chars = '<>:"/\\|?*'
    for char in dangerous_chars:
        filename = filename.replace(char, '_')

    filename = os.path.basename(filename)

    if len(filename) > 200:
        name, ext = os.path.splitext(filename)
        filename = name[:200-len(ext)] + ext
        logger.debug("Filename truncated to 200 characters")

    return filename


def validate_file_path(file_path, allowed_extensions=None):
    """Validate file path for security"""
    logger.info(f"Validating file path: {file_path}")

    try:
        abs_path = os.path.abspath(file_path)

        if not os.path.exists(abs_path):
            logger.warning(f"File does not exist: {abs_path}")
            return False, "File does not exist"

        if not os.path.isfile(abs_path):
            logger.warning(f"Path is not a file: {abs_path}")
            return False, "Path is not a file"

        if allowed_extensions:
            file_ext = os.path.splitext(abs_path)[1].lower()
            if file_ext not in [ext.lower() for ext in allowed_extensions]:
                logger.warning(f"File extension {file_ext} not in allowed list")
                return False, f"File extension not allowed. Allowed: {allowed_extensions}"

        file_size = os.path.getsize(abs_path)
        max_size = MAX_FILE_SIZE_GB * 1024 * 1024 * 1024
        if file_size > max_size:
            logger.warning(f"File too large: {file_size} bytes")
            return False, f"File too large. Maximum size: {MAX_FILE_SIZE_GB:.1f}GB"

        logger.info(f"File validation successful: {abs_path}")
        return True, abs_path

    except OSError as e:
        logger.error(f"Path validation error: {e}", exc_info=True)
        return False, f"Path validation error: {str(e)}"


def validate_folder_path(folder_path):
    """Validate folder path for security"""
    logger.info(f"Validating folder path: {folder_path}")

    abs_path = os.path.abspath(folder_path)

    if not os.path.exists(abs_path):
        logger.warning(f"Folder does not exist: {abs_path}")
        return False, "Folder does not exist"

    if not os.path.isdir(abs_path):
        logger.warning(f"Path is not a folder: {abs_path}")
        return False, "Path is not a folder"

    if not os.access(abs_path, os.R_OK):
        logger.warning(f"Folder is not readable: {abs_path}")
        return False, "Folder is not readable"

    logger.info(f"Folder validation successful: {abs_path}")
    return True, abs_path


def generate_output_filename(input_path, export_format):
    """Generate timestamped output filename next to the input"""
    input_path = os.path.abspath(input_path)
    if os.path.isdir(input_path):
        base = os.path.join(input_path, sanitize_filename(os.path.basename(input_path.rstrip(os.sep))))
    else:
        base, _ = os.path.splitext(input_path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{base}_AlpineQuest_{timestamp}.{export_format}"


def get_file_hash(file_path: str) -> str:
    """Calculate SHA256 hash of a file"""
    logger.debug(f"Calculating SHA256 hash for: {file_path}")

    hash_sha256 = hashlib.sha256()
    chunk_size = 65536  # 64KB chunks

    with open(file_path, "rb") as f:
        while chunk := f.read(chunk_size):
            hash_sha256.update(chunk)

    file_hash = hash_sha256.hexdigest()
    logger.debug(f"Hash calculated: {file_hash[:16]}...")
    return file_hash


def get_file_hash_safe(file_path):
    """Get file hash, returning an error string instead of raising"""
    try:
        return get_file_hash(file_path)
    except OSError as e:
        logger.error(f"Error getting file hash for {file_path}: {e}")
        return f"Error calculating hash: {str(e)}"


def log_report_hash(output_path, logger_instance=None):
    """Calculate and log the SHA256 hash of a generated report"""
    if logger_instance is None:
        logger_instance = logger

    hash_value = get_file_hash_safe(output_path)
    if hash_value.startswith("Error"):
        logger_instance.error(f"Failed to calculate hash for report: {output_path}")
        return None
    logger_instance.info(f"Report generated: {output_path}")
    logger_instance.info(f"Report SHA256 hash: {hash_value}")
    return hash_value


def _details_rows(system_info: dict, extraction_info: dict, examiner_name: str = None,
                  case_number: str = None) -> List[list]:
    """Rows describing the extraction, shared by the XLSX and CSV reports"""
    rows = [["WAYFINDER Extraction Report"], []]

    if examiner_name or case_number:
        rows.append(["Case Information"])
        rows.append(["Field", "Value"])
        if examiner_name:
            rows.append(["Examiner Name", examiner_name])
        if case_number:
            rows.append(["Case Number", case_number])
        rows.append([])

    rows.append(["System Information"])
    rows.append(["Field", "Value"])
    for key, value in (system_info or {}).items():
        rows.append([key.replace("_", " ").title(), str(value)])
    rows.append([])

    rows.append(["Extraction Information"])
    rows.append(["Field", "Value"])
    for key, value in (extraction_info or {}).items():
        if key == "input_files":
            continue
        rows.append([key.replace("_", " ").title(), str(value)])

    input_files = (extraction_info or {}).get("input_files", [])
    if input_files:
        rows.append([])
        rows.append(["Input Files"])
        rows.append(["File Path", "SHA256 Hash", "Size (bytes)", "Status"])
        for info in input_files:
            rows.append([info.get("path", ""), info.get("sha256_hash", ""),
                         info.get("size_bytes", ""), info.get("status", "")])
    return rows


def _excel_row(row: list) -> list:
    """Strip control characters that worksheets cannot hold"""
    return [ILLEGAL_CHARACTERS_RE.sub("", value) if isinstance(value, str) else value for value in row]


def write_excel_report(records: List, output_path: str, system_info: dict, extraction_info: dict,
                       examiner_name: str = None, case_number: str = None):
    """Write Excel report with one sheet per record kind plus extraction details"""
    logger.info(f"Writing Excel report with {len(records)} records to: {output_path}")

    wb = Workbook()
    ws_bookmarks = wb.active
    ws_bookmarks.title = "Bookmarks"

    sheets = {
        "bookmark": ws_bookmarks,
        "track": wb.create_sheet("Tracks"),
        "route": wb.create_sheet("Routes"),
        "area": wb.create_sheet("Areas"),
    }
    for ws in sheets.values():
        ws.append(REPORT_HEADERS)

    for record in records:
        for row in records_to_rows([record]):
            sheets[record.kind].append(_excel_row(row))

    ws_details = wb.create_sheet("Extraction Details")
    for row in _details_rows(system_info, extraction_info, examiner_name, case_number):
        ws_details.append(_excel_row(row))

    ws_details.column_dimensions['A'].width = 30
    ws_details.column_dimensions['B'].width = 70

    wb.save(output_path)
    logger.info(f"Excel report written successfully: {output_path}")


def write_csv_report(records: List, output_path: str, system_info: dict, extraction_info: dict,
                     examiner_name: str = None, case_number: str = None):
    """Write CSV report with artifact rows followed by extraction details"""
    logger.info(f"Writing CSV report with {len(records)} records to: {output_path}")

    with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(REPORT_HEADERS)
        writer.writerows(records_to_rows(records))

        for _ in range(3):
            writer.writerow([])
        writer.writerows(_details_rows(system_info, extraction_info, examiner_name, case_number))

    logger.info(f"CSV report written successfully: {output_path}")


def write_json_report(records: List, output_path: str, system_info: dict, extraction_info: dict,
                      examiner_name: str = None, case_number: str = None):
    """Write JSON report with artifact records and metadata"""
    logger.info(f"Writing JSON report with {len(records)} records to: {output_path}")

    json_data = {
        "metadata": {
            "creator": f"WAYFINDER v{WAYFINDER_VERSION}",
            "extraction_timestamp": datetime.now().isoformat(),
            "total_records": len(records),
        },
        "case_information": {},
        "system_information": system_info,
        "extraction_information": extraction_info,
        "records": [record_to_dict(record) for record in records],
    }

    if examiner_name:
        json_data["case_information"]["examiner_name"] = examiner_name
    if case_number:
        json_data["case_information"]["case_number"] = case_number

    with open(output_path, 'w', encoding='utf-8') as jsonfile:
        json.dump(json_data, jsonfile, indent=2, ensure_ascii=False, default=str)

    logger.info(f"JSON report written successfully: {output_path}")


def _geojson_geometry(record) -> dict:
    if isinstance(record, BookmarkRecord):
        return {"type": "Point", "coordinates": [record.longitude, record.latitude, record.elevation]}

    if isinstance(record, RouteRecord):
        coordinates = [[w.longitude, w.latitude, w.elevation] for w in record.waypoints]
    else:
        coordinates = [[p.longitude, p.latitude, p.elevation] for p in record.points]

    if isinstance(record, AreaRecord) and len(coordinates) >= 3:
        ring = list(coordinates)
        if ring[0] != ring[-1]:
            ring.append(ring[0])
        return {"type": "Polygon", "coordinates": [ring]}
    if len(coordinates) == 1:
        return {"type": "Point", "coordinates": coordinates[0]}
    return {"type": "LineString", "coordinates": coordinates}


def write_geojson_report(records: List, output_path: str, system_info: dict, extraction_info: dict,
                         examiner_name: str = None, case_number: str = None):
    """Write GeoJSON report with one feature per artifact record"""
    logger.info(f"Writing GeoJSON report with {len(records)} records to: {output_path}")

    features = []
    for i, record in enumerate(records, 1):
        properties = record_to_dict(record)
        # Coordinates live in the geometry
        properties.pop("points", None)
        properties["id"] = i
        features.append({
            "type": "Feature",
            "geometry": _geojson_geometry(record),
            "properties": properties,
        })

    geojson = {
        "type": "FeatureCollection",
        "metadata": {
            "extraction_timestamp": datetime.now().isoformat(),
            "total_features": len(features),
            "coordinate_system": "WGS84",
            "creator": f"WAYFINDER v{WAYFINDER_VERSION}",
            "case_information": {},
            "system_information": system_info,
            "extraction_information": extraction_info,
        },
        "features": features,
    }

    if examiner_name:
        geojson["metadata"]["case_information"]["examiner_name"] = examiner_name
    if case_number:
        geojson["metadata"]["case_information"]["case_number"] = case_number

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(geojson, f, indent=2, ensure_ascii=False, default=str)

    logger.info(f"GeoJSON report written successfully: {output_path}")


def _kml_coordinates(points) -> str:
    return ' '.join(f'{p.longitude},{p.latitude},{p.elevation}' for p in points)


def write_kml(records: List, output_path: str, system_info: dict = None, extraction_info: dict = None,
              examiner_name: str = None, case_number: str = None):
    """Write artifact records to KML format for Google Earth"""
    logger.info(f"Writing KML file with {len(records)} records to: {output_path}")

    kml_content = ['<?xml version="1.0" encoding="UTF-8"?>']
    kml_content.append('<kml xmlns="http://www.opengis.net/kml/2.2">')
    kml_content.append('  <Document>')
    kml_content.append('    <name>WAYFINDER AlpineQuest Data</name>')
    description = f'Extracted by WAYFINDER v{WAYFINDER_VERSION} on {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}'
    if case_number:
        description += f' for case {case_number}'
    if examiner_name:
        description += f' by {examiner_name}'
    kml_content.append(f'    <description>{escape(description)}</description>')

    kml_content.append('    <Style id="bookmarkPin">')
    kml_content.append('      <IconStyle>')
    kml_content.append('        <color>ff0000ff</color>')  # Red color in KML format (aabbggrr)
    kml_content.append('        <scale>0.8</scale>')
    kml_content.append('        <Icon>')
    kml_content.append('          <href>http://maps.google.com/mapfiles/kml/pushpin/red-pushpin.png</href>')
    kml_content.append('        </Icon>')
    kml_content.append('      </IconStyle>')
    kml_content.append('    </Style>')
    kml_content.append('    <Style id="trackStyle">')
    kml_content.append('      <LineStyle>')
    kml_content.append('        <color>ff0000ff</color>')
    kml_content.append('        <width>2</width>')
    kml_content.append('      </LineStyle>')
    kml_content.append('      <PolyStyle>')
    kml_content.append('        <color>4d0000ff</color>')
    kml_content.append('      </PolyStyle>')
    kml_content.append('    </Style>')

    for i, record in enumerate(records, 1):
        name = record.name or f"{record.kind.title()} {i}"
        kml_content.append('    <Placemark>')
        kml_content.append(f'      <name>{escape(name)}</name>')
        description_parts = [f"Type: {record.kind}", f"Source: {record.source or ''}",
                             f"Program: {record.program_name}"]
        timestamp = getattr(record, "timestamp", None)
        if timestamp is not None:
            description_parts.append(f"Timestamp: {format_timestamp(timestamp)}")
        kml_content.append(f'      <description>{escape(chr(10).join(description_parts))}</description>')

        if isinstance(record, BookmarkRecord):
            kml_content.append('      <styleUrl>#bookmarkPin</styleUrl>')
            kml_content.append('      <Point>')
            kml_content.append(f'        <coordinates>{record.longitude},{record.latitude},{record.elevation}</coordinates>')
            kml_content.append('      </Point>')
        elif isinstance(record, AreaRecord):
            ring = list(record.points)
            if ring and ring[0] != ring[-1]:
                ring.append(ring[0])
            kml_content.append('      <styleUrl>#trackStyle</styleUrl>')
            kml_content.append('      <Polygon>')
            kml_content.append('        <outerBoundaryIs>')
            kml_content.append('          <LinearRing>')
            kml_content.append(f'            <coordinates>{_kml_coordinates(ring)}</coordinates>')
            kml_content.append('          </LinearRing>')
            kml_content.append('        </outerBoundaryIs>')
            kml_content.append('      </Polygon>')
        else:
            points = record.waypoints if isinstance(record, RouteRecord) else record.points
            kml_content.append('      <styleUrl>#trackStyle</styleUrl>')
            kml_content.append('      <LineString>')
            kml_content.append('        <tessellate>1</tessellate>')
            kml_content.append(f'        <coordinates>{_kml_coordinates(points)}</coordinates>')
            kml_content.append('      </LineString>')
        kml_content.append('    </Placemark>')

    kml_content.append('  </Document>')
    kml_content.append('</kml>')

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(kml_content))
    logger.info(f"KML file written successfully: {output_path}")


REPORT_WRITERS = {
    "xlsx": write_excel_report,
    "csv": write_csv_report,
    "json": write_json_report,
    "geojson": write_geojson_report,
    "kml": write_kml,
}
