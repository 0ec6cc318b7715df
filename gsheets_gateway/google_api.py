"""Thin wrappers around the Google Sheets, Docs, Drive and Analytics calls.

Every wrapper builds one request, executes it and logs the elapsed time.
``HttpError`` and anything else raised by the client are logged and re-raised
for the endpoint layer to map onto an HTTP response.
"""

import logging
import time

from googleapiclient.errors import HttpError
from googleapiclient.http import MediaInMemoryUpload

logger = logging.getLogger(__name__)


def _execute(description, request):
    start_time = time.time()
    try:
        result = request.execute()
        duration = time.time() - start_time
        logger.info(f"API: {description} successful in {duration:.2f}s.")
        logger.debug(f"API: {description} result: {result}")
        return result
    except HttpError as e:
        duration = time.time() - start_time
        error_content = e.content.decode('utf-8') if e.content else str(e)
        logger.error(f"API: HttpError during {description} after {duration:.2f}s: {error_content}", exc_info=True)
        raise
    except Exception as e:
        duration = time.time() - start_time
        logger.error(f"API: Generic error during {description} after {duration:.2f}s: {str(e)}", exc_info=True)
        raise


def build_range(sheetname=None, range_name=None, default_sheet="Sheet1", default_range="A1:Z1"):
    """A1 notation for ``range_name`` on ``sheetname``, e.g. ``Sheet1!A1:Z1``."""
    return f"{sheetname or default_sheet}!{range_name or default_range}"


# --- Google Sheets ---
def api_get_values(service, spreadsheet_id, range_name, major_dimension="ROWS", value_render_option="FORMATTED_VALUE"):
    logger.info(f"API: Getting values from sheet '{spreadsheet_id}', range '{range_name}'.")
    request = service.spreadsheets().values().get(
        spreadsheetId=spreadsheet_id, range=range_name,
        majorDimension=major_dimension, valueRenderOption=value_render_option
    )
    return _execute("get values", request)


def api_update_values(service, spreadsheet_id, range_name, rows, value_input_option="USER_ENTERED"):
    logger.info(f"API: Updating values '{range_name}' in sheet '{spreadsheet_id}' with option '{value_input_option}'. Rows: {len(rows)}")
    request = service.spreadsheets().values().update(
        spreadsheetId=spreadsheet_id, range=range_name,
        valueInputOption=value_input_option, body={"values": rows}
    )
    return _execute("update values", request)


def api_append_values(service, spreadsheet_id, range_name, rows, value_input_option="USER_ENTERED", insert_data_option="INSERT_ROWS"):
    logger.info(f"API: Appending values to sheet '{spreadsheet_id}', range '{range_name}'. Rows: {len(rows)}")
    request = service.spreadsheets().values().append(
        spreadsheetId=spreadsheet_id, range=range_name,
        valueInputOption=value_input_option, insertDataOption=insert_data_option,
        body={"values": rows}
    )
    return _execute("append values", request)


def api_clear_values(service, spreadsheet_id, range_name):
    logger.info(f"API: Clearing values from sheet '{spreadsheet_id}', range '{range_name}'.")
    request = service.spreadsheets().values().clear(spreadsheetId=spreadsheet_id, range=range_name, body={})
    return _execute("clear values", request)


def api_get_spreadsheet_metadata(service, spreadsheet_id, fields="properties,sheets.properties"):
    logger.info(f"API: Getting metadata for spreadsheet '{spreadsheet_id}' with fields '{fields}'.")
    request = service.spreadsheets().get(spreadsheetId=spreadsheet_id, fields=fields, includeGridData=False)
    return _execute("get spreadsheet metadata", request)


# --- Google Docs ---
def api_get_document(service, document_id):
    logger.info(f"API: Getting document '{document_id}'.")
    return _execute("get document", service.documents().get(documentId=document_id))


def document_text(document):
    """Concatenated text runs of a Docs ``documents.get`` response."""
    parts = []
    for block in document.get("body", {}).get("content", []):
        paragraph = block.get("paragraph")
        if not paragraph:
            continue
        for element in paragraph.get("elements", []):
            text_run = element.get("textRun")
            if text_run:
                parts.append(text_run.get("content", ""))
    return "".join(parts)


def api_document_batch_update(service, document_id, requests_list):
    logger.info(f"API: Performing batchUpdate on document '{document_id}' with {len(requests_list)} requests.")
    request = service.documents().batchUpdate(documentId=document_id, body={"requests": requests_list})
    return _execute("document batch update", request)


def build_append_text_requests(text):
    return [{"insertText": {"endOfSegmentLocation": {}, "text": text}}]


def build_delete_range_requests(start_index, end_index):
    if end_index <= start_index:
        raise ValueError("end_index must be greater than start_index.")
    return [{"deleteContentRange": {"range": {"startIndex": start_index, "endIndex": end_index}}}]


def build_replace_range_requests(start_index, end_index, text):
    requests_list = build_delete_range_requests(start_index, end_index)
    if text:
        requests_list.append({"insertText": {"location": {"index": start_index}, "text": text}})
    return requests_list


# --- Google Drive ---
def api_create_drive_file(service, name, mime_type, content=None, parent_id=None):
    logger.info(f"API: Creating Drive file '{name}' ({mime_type}), parent: {parent_id or 'root'}.")
    body = {"name": name, "mimeType": mime_type}
    if parent_id:
        body["parents"] = [parent_id]
    media = None
    if content is not None:
        media = MediaInMemoryUpload(content.encode("utf-8"), mimetype=mime_type)
    request = service.files().create(body=body, media_body=media, fields="id,name,mimeType,parents,webViewLink")
    return _execute("create drive file", request)


def api_get_drive_file(service, file_id, fields="id,name,mimeType,parents,modifiedTime,webViewLink"):
    logger.info(f"API: Getting Drive file '{file_id}'.")
    return _execute("get drive file", service.files().get(fileId=file_id, fields=fields))


def api_list_drive_files(service, query=None, page_size=20):
    logger.info(f"API: Listing Drive files, query: {query!r}, page size: {page_size}.")
    request = service.files().list(
        q=query or None, pageSize=page_size, spaces="drive",
        fields="nextPageToken, files(id,name,mimeType,modifiedTime)"
    )
    return _execute("list drive files", request)


def api_delete_drive_file(service, file_id):
    logger.info(f"API: Deleting Drive file '{file_id}'.")
    _execute("delete drive file", service.files().delete(fileId=file_id))
    return {"deleted": file_id}


# --- Google Analytics Reporting ---
def build_report_request(view_id, start_date, end_date, metric_expression, dimension_name):
    return {
        "viewId": view_id,
        "dateRanges": [{"startDate": start_date, "endDate": end_date}],
        "metrics": [{"expression": metric_expression}],
        "dimensions": [{"name": dimension_name}],
    }


def api_get_analytics_report(service, report_request):
    logger.info(f"API: Fetching analytics report for view '{report_request.get('viewId')}'.")
    request = service.reports().batchGet(body={"reportRequests": [report_request]})
    return _execute("analytics report", request)
