"""
ModSentry - Discord Content Moderation Bot

ModSentry watches guild chat for words a server has banned and reacts with a
warning, a deletion, a timeout or a kick. Matching is built to survive the
usual evasion tricks: leetspeak, look-alike characters, spaced-out letters,
repeated letters, phonetic respellings, reversed words, and text typed in
Latin on a keyboard meant for another script.

Core Components:

- **Moderation Engine**: Text normalization into candidate variants, several
  string-similarity algorithms, and a sensitivity-keyed scoring policy that
  turns detections into a flag decision and a recommended action
- **Word Lists**: Per-guild and global custom word lists stored in SQLite and
  served through a TTL cache that fails open when the store is down
- **Guild Settings**: Per-server sensitivity, default action, monitored
  channels, excluded roles and log channel
- **Bot Integration**: A message listener that runs the engine on every
  message, and a ``/filter`` slash command group for managing it

Usage:
    from modsentry.main import main
    main()
"""
