"""Repository layer for the lead discovery pipeline.

Provides CRUD, dedup, and query methods for core entities:
- leads: find_in_campaign, upsert_in_campaign, merge_profile_data,
         list_for_campaign, count_for_campaign
- campaigns: get_for_user, set_status, refresh_lead_count
- credits: get_subscription, increment_credits_used, record_usage
- websets: create, get_by_webset_id, acquire_processing_lock, mark_completed
- suppression: get_suppressed_emails, is_suppressed, add
- rate_limits: purge_older_than, get_windows_since, record_request
"""
