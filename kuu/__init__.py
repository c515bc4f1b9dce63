"""
Kuu — Community Management Bot for a Single Discord Server
============================================================
Onboards new members through committee verification, kicks members who
linger unverified, remembers birthdays and celebrates them every day, and
hosts the treasurer mini-game for event groups.

Package layout::

    kuu/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Messages, emoji fallbacks
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM model for discord_members
    ├── engine/
    │   ├── birthdays.py   # Next-occurrence, age, upcoming ranking
    │   ├── treasurer.py   # Prompts, point bands, game session state
    │   └── payloads.py    # Button custom_id parsing
    ├── services/
    │   ├── birthday_service.py      # Birthday store (get/set/unset)
    │   ├── celebration_service.py   # Daily birthday scan + announcement
    │   ├── verification_service.py  # Kick control + verify/reject actions
    │   ├── registration_service.py  # Registration form lookup
    │   └── embeds.py                # Discord embed builders
    └── bot/
        ├── core.py        # Bot subclass, extension table
        └── cogs/
            ├── birthday.py      # /birthday set|unset|upcoming
            ├── treasurer.py     # /treasurer
            ├── verification.py  # Member join, intro, verify buttons
            └── tasks.py         # Daily birthday loop
"""

__version__ = "0.1.0"
