"""
Content moderation engine for ModSentry.

- **text_normalizer.py** / **transliteration.py**: turn a message into the
  ordered set of candidate variants (substitutions, bypass collapse, letters
  only, no spaces, de-duplicated, phonetic, transliterated).
- **similarity.py** / **word_matcher.py**: Levenshtein, Jaro, character
  overlap and containment scores, and the ordered matchers that find one
  banned word inside those variants.
- **scoring.py**: sensitivity thresholds, flag decision, recommended action.
- **word_list_cache.py** / **word_store.py**: TTL cache of per-guild and
  global word lists in front of the persistent store.
- **moderation_engine.py**: ``ContentModerationEngine``, the facade used by
  the bot.
- **action_executor.py**: applies the guild's action to a flagged message.
"""
