import logging
import threading
import time

import requests
from flask import Blueprint, current_app, jsonify, request
from googleapiclient.errors import HttpError

from . import google_api
from .coercion import INVALID_INPUT_KIND, coerce_row
from .config import DEFAULT_RANGE, DEFAULT_SHEET_NAME, ConfigurationError
from .google_client import GoogleServices

logger = logging.getLogger(__name__)

bp = Blueprint("gateway", __name__)

_services_lock = threading.Lock()


class CoercionFailed(ValueError):
    def __init__(self, errors):
        super().__init__(f"{len(errors)} value(s) could not be coerced.")
        self.errors = errors


def get_google_services():
    services = current_app.config.get("GOOGLE_SERVICES")
    if services is None:
        with _services_lock:
            services = current_app.config.get("GOOGLE_SERVICES")
            if services is None:
                services = GoogleServices.from_config(current_app.config)
                current_app.config["GOOGLE_SERVICES"] = services
    return services


def handle_google_api_request(endpoint_name, required_fields, process_logic_func, data=None):
    logger.info(f"ENDPOINT {endpoint_name}: Request received.")
    start_time_total = time.time()
    try:
        if data is None:
            data = request.get_json(silent=True)
        logger.debug(f"ENDPOINT {endpoint_name}: Request body keys: {list(data.keys()) if isinstance(data, dict) else None}")
        if not isinstance(data, dict) or not all(k in data for k in required_fields):
            missing = [k for k in required_fields if not isinstance(data, dict) or k not in data]
            logger.warning(f"ENDPOINT {endpoint_name}: Missing required fields. Needs: {required_fields}. Missing: {missing}.")
            return jsonify({"success": False, "error": f"Missing one or more required fields: {', '.join(missing)}"}), 400

        time_before_services = time.time()
        services = get_google_services()
        logger.info(f"ENDPOINT {endpoint_name}: Google services acquisition took {time.time() - time_before_services:.2f}s.")
        time_before_logic = time.time()
        api_result, success_message = process_logic_func(services, data)
        logger.info(f"ENDPOINT {endpoint_name}: API logic execution took {time.time() - time_before_logic:.2f}s.")

        logger.info(f"ENDPOINT {endpoint_name}: {success_message} (Total time: {time.time() - start_time_total:.2f}s).")
        return jsonify({"success": True, "message": success_message, "details": api_result})
    except HttpError as e:
        error_content = e.content.decode('utf-8') if getattr(e, 'content', None) else str(e)
        status_code = e.resp.status if getattr(e, 'resp', None) is not None else 500
        logger.error(f"ENDPOINT {endpoint_name}: Google API HttpError: {error_content} (Total time: {time.time() - start_time_total:.2f}s)", exc_info=True)
        return jsonify({"success": False, "error": "Google API Error", "details": error_content}), status_code
    except CoercionFailed as cf:
        logger.warning(f"ENDPOINT {endpoint_name}: {cf} {cf.errors}")
        return jsonify({"success": False, "error": INVALID_INPUT_KIND, "details": cf.errors}), 400
    except ConfigurationError as ce:
        logger.error(f"ENDPOINT {endpoint_name}: Server configuration error: {ce} (Total time: {time.time() - start_time_total:.2f}s)")
        return jsonify({"success": False, "error": "Server configuration error", "details": str(ce)}), 500
    except ValueError as ve:
        logger.warning(f"ENDPOINT {endpoint_name}: ValueError: {str(ve)} (Total time: {time.time() - start_time_total:.2f}s)")
        return jsonify({"success": False, "error": "ValueError", "details": str(ve)}), 400
    except requests.exceptions.RequestException as re:
        logger.error(f"ENDPOINT {endpoint_name}: Requests library exception: {str(re)} (Total time: {time.time() - start_time_total:.2f}s)", exc_info=True)
        return jsonify({"success": False, "error": "Communication error with token provider", "details": str(re)}), 503
    except Exception as e:
        logger.critical(f"ENDPOINT {endpoint_name}: Unhandled generic exception: {str(e)} (Total time: {time.time() - start_time_total:.2f}s)", exc_info=True)
        return jsonify({"success": False, "error": "An unexpected error occurred", "details": str(e)}), 500


# --- Google Sheets ---
def _spreadsheet_target(data):
    spreadsheet_id = data.get("spreadsheet_id") or current_app.config.get("DEFAULT_SPREADSHEET_ID")
    if not spreadsheet_id:
        raise ValueError("spreadsheet_id is required (no DEFAULT_SPREADSHEET_ID configured).")
    full_range = google_api.build_range(data.get("sheetname"), data.get("range"), DEFAULT_SHEET_NAME, DEFAULT_RANGE)
    return spreadsheet_id, full_range


def _coerced_rows(data):
    if "rows" in data:
        rows = data["rows"]
        if not isinstance(rows, list) or not all(isinstance(r, list) for r in rows):
            raise ValueError("rows must be a list of lists.")
    else:
        values = data.get("values")
        if not isinstance(values, list):
            raise ValueError("values must be a list.")
        rows = [values]

    coerced, errors = [], []
    for row_index, row in enumerate(rows):
        coerced_row, row_errors = coerce_row(row)
        coerced.append(coerced_row)
        errors.extend(f"row {row_index} {message}" for message in row_errors)
    if errors:
        raise CoercionFailed(errors)
    return coerced


@bp.route('/write', methods=['POST'])
def sheets_write():
    def process_logic(services, data):
        spreadsheet_id, full_range = _spreadsheet_target(data)
        result = google_api.api_update_values(services.sheets, spreadsheet_id, full_range, _coerced_rows({"values": data["values"]}))
        return result, f"Values written to {result.get('updatedRange', full_range)}."
    return handle_google_api_request("sheets_write", ['values'], process_logic)


@bp.route('/update', methods=['POST'])
def sheets_update():
    def process_logic(services, data):
        spreadsheet_id, full_range = _spreadsheet_target(data)
        result = google_api.api_update_values(services.sheets, spreadsheet_id, full_range, _coerced_rows({"rows": data["rows"]}))
        return result, f"Values updated in {result.get('updatedRange', full_range)}."
    return handle_google_api_request("sheets_update", ['rows'], process_logic)


@bp.route('/append', methods=['POST'])
def sheets_append():
    def process_logic(services, data):
        if "values" not in data and "rows" not in data:
            raise ValueError("Either values or rows is required.")
        spreadsheet_id, full_range = _spreadsheet_target(data)
        result = google_api.api_append_values(services.sheets, spreadsheet_id, full_range, _coerced_rows(data))
        return result, "Values appended successfully."
    return handle_google_api_request("sheets_append", [], process_logic)


@bp.route('/read', methods=['GET', 'POST'])
def sheets_read():
    def process_logic(services, data):
        spreadsheet_id, full_range = _spreadsheet_target(data)
        result = google_api.api_get_values(services.sheets, spreadsheet_id, full_range)
        return result.get("values", []), "Values retrieved successfully."
    data = request.args.to_dict() if request.method == 'GET' else None
    return handle_google_api_request("sheets_read", [], process_logic, data=data)


@bp.route('/delete', methods=['POST'])
def sheets_delete():
    def process_logic(services, data):
        spreadsheet_id, full_range = _spreadsheet_target(data)
        result = google_api.api_clear_values(services.sheets, spreadsheet_id, full_range)
        return result, "Values cleared successfully."
    return handle_google_api_request("sheets_delete", [], process_logic)


@bp.route('/metadata', methods=['POST'])
def sheets_metadata():
    def process_logic(services, data):
        spreadsheet_id, _ = _spreadsheet_target(data)
        result = google_api.api_get_spreadsheet_metadata(
            services.sheets, spreadsheet_id, data.get('fields', "properties,sheets.properties")
        )
        return result, "Spreadsheet metadata retrieved successfully."
    return handle_google_api_request("sheets_metadata", [], process_logic)


# --- Google Docs ---
def _index(data, key):
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{key} must be a positive integer.")
    return value


@bp.route('/docs/read', methods=['POST'])
def docs_read():
    def process_logic(services, data):
        document = google_api.api_get_document(services.docs, data['document_id'])
        details = {
            "document_id": document.get("documentId", data['document_id']),
            "title": document.get("title"),
            "text": google_api.document_text(document),
        }
        return details, "Document retrieved successfully."
    return handle_google_api_request("docs_read", ['document_id'], process_logic)


@bp.route('/docs/append', methods=['POST'])
def docs_append():
    def process_logic(services, data):
        text = data['text']
        if not isinstance(text, str) or not text:
            raise ValueError("text must be a non-empty string.")
        requests_list = google_api.build_append_text_requests(text)
        result = google_api.api_document_batch_update(services.docs, data['document_id'], requests_list)
        return result, "Text appended successfully."
    return handle_google_api_request("docs_append", ['document_id', 'text'], process_logic)


@bp.route('/docs/update', methods=['POST'])
def docs_update():
    def process_logic(services, data):
        requests_list = google_api.build_replace_range_requests(
            _index(data, 'start_index'), _index(data, 'end_index'), data.get('text') or ""
        )
        result = google_api.api_document_batch_update(services.docs, data['document_id'], requests_list)
        return result, "Text updated successfully."
    return handle_google_api_request("docs_update", ['document_id', 'start_index', 'end_index'], process_logic)


@bp.route('/docs/delete', methods=['POST'])
def docs_delete():
    def process_logic(services, data):
        requests_list = google_api.build_delete_range_requests(_index(data, 'start_index'), _index(data, 'end_index'))
        result = google_api.api_document_batch_update(services.docs, data['document_id'], requests_list)
        return result, "Text deleted successfully."
    return handle_google_api_request("docs_delete", ['document_id', 'start_index', 'end_index'], process_logic)


# --- Google Drive ---
@bp.route('/drive/create', methods=['POST'])
def drive_create():
    def process_logic(services, data):
        content = data.get('content')
        if content is not None and not isinstance(content, str):
            raise ValueError("content must be a string.")
        result = google_api.api_create_drive_file(
            services.drive, data['name'], data['mime_type'],
            content=content,
            parent_id=data.get('folder_id') or data.get('parent_id'),
        )
        return result, f"Drive file '{result.get('name', data['name'])}' created successfully."
    return handle_google_api_request("drive_create", ['name', 'mime_type'], process_logic)


@bp.route('/drive/read', methods=['POST'])
def drive_read():
    def process_logic(services, data):
        return google_api.api_get_drive_file(services.drive, data['file_id']), "Drive file retrieved successfully."
    return handle_google_api_request("drive_read", ['file_id'], process_logic)


@bp.route('/drive/list', methods=['POST'])
def drive_list():
    def process_logic(services, data):
        page_size = data.get('page_size', 20)
        if isinstance(page_size, bool) or not isinstance(page_size, int) or not 1 <= page_size <= 1000:
            raise ValueError("page_size must be an integer between 1 and 1000.")
        result = google_api.api_list_drive_files(services.drive, data.get('query'), page_size)
        return result, f"{len(result.get('files', []))} Drive file(s) listed."
    return handle_google_api_request("drive_list", [], process_logic)


@bp.route('/drive/delete', methods=['POST'])
def drive_delete():
    def process_logic(services, data):
        return google_api.api_delete_drive_file(services.drive, data['file_id']), "Drive file deleted successfully."
    return handle_google_api_request("drive_delete", ['file_id'], process_logic)


# --- Google Analytics Reporting ---
@bp.route('/analytics/report', methods=['POST'])
def analytics_report():
    def process_logic(services, data):
        report_request = google_api.build_report_request(
            data['view_id'], data['start_date'], data['end_date'],
            data['metric_expression'], data['dimension_name']
        )
        result = google_api.api_get_analytics_report(services.analytics, report_request)
        return result, "Analytics report retrieved successfully."
    return handle_google_api_request(
        "analytics_report",
        ['view_id', 'start_date', 'end_date', 'metric_expression', 'dimension_name'],
        process_logic
    )
