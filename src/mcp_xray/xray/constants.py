"""Xray API constants and default values."""

# Xray Cloud
XRAY_CLOUD_BASE_URL = "https://xray.cloud.getxray.app/api/v2"
CLOUD_AUTHENTICATE_PATH = "authenticate"
CLOUD_GRAPHQL_PATH = "graphql"

# Cloud tokens live ~15 minutes; track 14 and refresh within the last minute
TOKEN_LIFETIME_SECONDS = 14 * 60
TOKEN_EXPIRY_BUFFER_SECONDS = 60

# Xray Server / Data Center, relative to the Jira base URL
XRAY_SERVER_API_PATH = "rest/raven/1.0/api"
XRAY_SERVER_IMPORT_PATH = "rest/raven/1.0/import/execution"

# Issue field holding test environments on Test Execution issues (Server)
DEFAULT_TEST_ENVIRONMENTS_FIELD = "customfield_testEnvironments"

# Seconds before an upstream HTTP call is abandoned
DEFAULT_TIMEOUT = 75

# Import endpoints per result format, relative to the import base
IMPORT_ENDPOINTS = {
    "junit": "junit",
    "cucumber": "cucumber",
    "robot": "robot",
    "testng": "testng",
    "xray-json": "",
}
