"""
MattBot — Community Moderation & MattBucks Economy for Discord
===============================================================
Crowd-sourced moderation (reaction mutes and reports), a server lockdown
switch, and a small virtual currency with a shop and booster rewards.

Package layout::

    mattbot/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Emoji, role names, formatting helpers
    ├── storage.py         # Ledger snapshot file + async thread bridge
    ├── engine/
    │   ├── ledger.py      # MattBucks balances, rewards, purchases
    │   ├── shop.py        # Static shop catalog
    │   ├── votes.py       # Reaction vote tallying rules
    │   └── search.py      # LMGTFY / LMGPTTFY link builders
    ├── services/
    │   ├── economy_service.py  # Booster sweep + purchase notification
    │   ├── community_vote.py   # Discord-side vote gathering
    │   ├── lockdown_service.py # Lockdown steps
    │   ├── mod_log.py          # #bot_log writer
    │   └── embeds.py           # Embed builders
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        └── cogs/
            ├── mattbucks.py        # /matt command group
            ├── tasks.py            # Booster reward loop
            ├── crowd_mute.py       # Reaction-vote timeouts
            ├── message_reports.py  # Reaction-vote deletions
            ├── lockdown.py         # /lockdown toggle
            └── lmgtfy.py           # Message context menus
"""

__version__ = "0.1.0"
