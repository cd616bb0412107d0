#!/usr/bin/env python3
"""
Mention Normalizer for the Brand Crawler
Turns flat [text, id, time] feed records into mentions and applies the high-water-mark dedup
"""
import re
import logging
from datetime import datetime
from typing import List, Sequence

from .errors import MalformedRecord
from .models import PersistedMention, RawMention, WalkState, UNKNOWN_SOURCE_LINK

logger = logging.getLogger(__name__)

# Wire timestamp format of the feed, e.g. 2013-05-01T12:00:00+0000
WIRE_TIME_FORMAT = '%Y-%m-%dT%H:%M:%S%z'
FIELDS_PER_RECORD = 3
SENTINEL_ID = 0

RE_INT64 = re.compile(r'^[+-]?\d+$')
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

def parse_external_id(raw: str) -> int:
    """Parse a record id as a signed 64-bit integer"""
    if raw is None or not RE_INT64.match(raw):
        raise MalformedRecord(f"id not an integer: {raw!r}")
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        raise MalformedRecord(f"id out of 64-bit range: {raw!r}")
    return value

def parse_timestamp(raw: str) -> int:
    """Parse a wire timestamp into Unix seconds"""
    try:
        return int(datetime.strptime(raw, WIRE_TIME_FORMAT).timestamp())
    except (TypeError, ValueError) as e:
        raise MalformedRecord(f"time not in {WIRE_TIME_FORMAT}: {raw!r}") from e

class MentionNormalizer:
    """Dedup against the walk's threshold and buffer new mentions on the walk state"""

    def __init__(self, source_tag: str = "facebook"):
        self.source_tag = source_tag

    def to_raw(self, text: str, raw_id: str, raw_time: str, state: WalkState) -> RawMention:
        """
        Build a RawMention, tolerating a bad id

        Raises:
            MalformedRecord: the timestamp cannot be parsed (the record cannot be ordered)
        """
        try:
            external_id = parse_external_id(raw_id)
        except MalformedRecord as e:
            state.malformed_fields += 1
            logger.warning(f"id convert failure, using sentinel {SENTINEL_ID}: {e}")
            external_id = SENTINEL_ID

        try:
            timestamp = parse_timestamp(raw_time)
        except MalformedRecord:
            state.malformed_fields += 1
            raise

        return RawMention(text=text, external_id=external_id, timestamp=timestamp)

    def normalize(self, brand_name: str, records: Sequence[str], state: WalkState) -> List[PersistedMention]:
        """
        Normalize one page of records

        The feed is reverse-chronological: the first record at or below
        state.threshold ends this page and flags the whole walk to stop.

        Args:
            brand_name: Brand the page was searched for
            records: Flat list, three fields per record
            state: Accumulator of the current walk (mutated)

        Returns:
            Mentions accepted from this page (also appended to state.mentions)
        """
        accepted: List[PersistedMention] = []

        if len(records) % FIELDS_PER_RECORD:
            logger.debug(f"Ignoring {len(records) % FIELDS_PER_RECORD} trailing field(s) of an incomplete record")

        for offset in range(0, len(records) - FIELDS_PER_RECORD + 1, FIELDS_PER_RECORD):
            text, raw_id, raw_time = records[offset:offset + FIELDS_PER_RECORD]

            try:
                raw = self.to_raw(text, raw_id, raw_time, state)
            except MalformedRecord as e:
                # without a timestamp the record cannot be ordered against the threshold
                logger.warning(f"time convert failure, skipping record: {e}")
                continue

            if raw.timestamp <= state.threshold:
                state.stop_reason = "reached_seen"
                logger.debug(f"{brand_name}: reached seen data at {raw.timestamp} (threshold {state.threshold})")
                break

            if raw.timestamp > state.tentative_high_water:
                state.tentative_high_water = raw.timestamp

            key = (raw.timestamp, raw.external_id, raw.text)
            if key in state.seen:
                logger.debug(f"{brand_name}: duplicate record {raw.external_id} at {raw.timestamp} within walk")
                continue
            state.seen.add(key)

            mention = PersistedMention(
                name=brand_name,
                timestamp=raw.timestamp,
                source=self.source_tag,
                text=raw.text,
                source_link=UNKNOWN_SOURCE_LINK
            )
            accepted.append(mention)

        state.mentions.extend(accepted)
        return accepted
