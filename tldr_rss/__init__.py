"""
tldr_rss

Republishes TLDR newsletters as per-topic RSS/HTML feeds plus one combined RSS feed.

Pipeline: fetch topic feed (retrying on 429) → keep recent items → scrape each issue page → publish
"""
