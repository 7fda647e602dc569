"""
Social cards

Renders shareable PNG/SVG cards for GitHub users, OpenSauced highlights and
OpenSauced insight pages, and keeps them cached in object storage:
- freshness check against the subject's remote updated_at
- two-step generation (fetch_metadata, then render)
- upload + public CDN URL
"""
