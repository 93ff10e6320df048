from prometheus_client import Counter, Histogram

# Histogram for LibreLink Up API call latency (seconds)
llu_api_call_latency_seconds = Histogram(
    'llu_api_call_latency_seconds',
    'Latency of LibreLink Up API calls in seconds',
    ['method', 'endpoint']
)

# Counter for total API calls, labeled by method and status
# status: success, error
llu_api_call_total = Counter(
    'llu_api_call_total',
    'Total LibreLink Up API calls',
    ['method', 'endpoint', 'status']
)

# Login attempts; outcome: success, failure, wrong_region
llu_login_total = Counter(
    'llu_login_total',
    'Total LibreLink Up login attempts',
    ['outcome']
)

nightscout_request_total = Counter(
    'nightscout_request_total',
    'Total Nightscout API requests',
    ['api_version', 'operation', 'status']
)

entries_uploaded_total = Counter(
    'entries_uploaded_total',
    'Total number of glucose entries uploaded to Nightscout'
)

# Sync cycle outcomes and durations
sync_cycle_total = Counter(
    'sync_cycle_total',
    'Total number of sync cycles',
    ['status']  # status: completed, no_new_data, failed, skipped
)
sync_cycle_duration_seconds = Histogram(
    'sync_cycle_duration_seconds',
    'Duration of sync cycles in seconds'
)

__all__ = [
    'llu_api_call_latency_seconds',
    'llu_api_call_total',
    'llu_login_total',
    'nightscout_request_total',
    'entries_uploaded_total',
    'sync_cycle_total',
    'sync_cycle_duration_seconds',
]
