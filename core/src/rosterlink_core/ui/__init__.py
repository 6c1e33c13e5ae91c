"""Server-rendered pages: landing page, magic-link dashboard, error pages.

- Jinja2 templates (autoescaped) rendered to plain strings
- the dashboard embeds its token and roster for the inline update script
- profile edits go through the JSON /update-profile endpoint
"""
