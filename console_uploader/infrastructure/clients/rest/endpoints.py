"""
REST endpoint paths of the console server.
"""

ROOT_PATH = "/api"
API_INFO_ENDPOINT = ROOT_PATH + "/"
APPLICATIONS_ENDPOINT = ROOT_PATH + "/applications"
UPLOAD_ENDPOINT = "/upload"
EXTRACT_ENDPOINT = "/extract"


class ApiEndpointHelper:
    """Builds endpoint paths relative to the server URL."""

    @staticmethod
    def api_info_path() -> str:
        return API_INFO_ENDPOINT

    @staticmethod
    def application_path(app_guid: str) -> str:
        return f"{APPLICATIONS_ENDPOINT}/{app_guid}"

    @staticmethod
    def create_upload_path(app_guid: str) -> str:
        return ApiEndpointHelper.application_path(app_guid) + UPLOAD_ENDPOINT

    @staticmethod
    def upload_path(app_guid: str, upload_guid: str) -> str:
        return f"{ApiEndpointHelper.create_upload_path(app_guid)}/{upload_guid}"

    @staticmethod
    def extract_upload_path(app_guid: str, upload_guid: str) -> str:
        return ApiEndpointHelper.upload_path(app_guid, upload_guid) + EXTRACT_ENDPOINT
