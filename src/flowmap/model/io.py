"""
Input Manager (JSON)
Loads the transfer dataset and the world map from JSON documents.

The traffic collector is an external service; this module only validates
what it produced. Anything that is not a list of transfers (including the
collector's error objects) is rejected before it reaches the map.
"""
import json
import logging
import os
from typing import Any

from flowmap.model.errors import MalformedData
from flowmap.model.flows import FlowRecord, validate_records
from flowmap.model.geometry import MapFeature, features_from_geojson, features_from_topojson

logger = logging.getLogger(__name__)

ERR_MALFORMED_DATA = "Data is malformed. Expected array, got"


class IOManager:

    @staticmethod
    def _read_json(filepath: str) -> Any:
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"File not found: {filepath}")
        with open(filepath, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise MalformedData(f"Invalid JSON in {filepath}: {e}") from e
            except UnicodeDecodeError as e:
                raise MalformedData(f"{filepath} is not UTF-8 text: {e}") from e

    @staticmethod
    def parse_transfers(payload: Any) -> list[FlowRecord]:
        """
        Convert a collector payload into validated flow records.

        Raises:
            MalformedData: If the payload is an error object or not an array.
            InvalidRecord: If an entry is missing required fields or repeats an identity.
        """
        if isinstance(payload, dict) and "displayName" in payload and "message" in payload:
            raise MalformedData(str(payload["message"]))

        if not isinstance(payload, list):
            raise MalformedData(f"{ERR_MALFORMED_DATA} {type(payload).__name__}")

        records = [FlowRecord.from_dict(item) for item in payload]
        validate_records(records)
        return records

    @staticmethod
    def load_transfers(filepath: str) -> list[FlowRecord]:
        logger.info(f"Loading transfers from: {filepath}")
        records = IOManager.parse_transfers(IOManager._read_json(filepath))
        logger.info(f"Loaded {len(records)} transfers.")
        return records

    @staticmethod
    def parse_map(payload: Any, object_name: str = "countries") -> list[MapFeature]:
        """
        Convert a TopoJSON topology or a GeoJSON document into map features.

        Raises:
            MalformedData: If the document is neither.
        """
        if not isinstance(payload, dict):
            raise MalformedData(f"Map data must be an object, got {type(payload).__name__}")
        if payload.get("type") == "Topology":
            return features_from_topojson(payload, object_name)
        return features_from_geojson(payload)

    @staticmethod
    def load_map(filepath: str, object_name: str = "countries") -> list[MapFeature]:
        logger.info(f"Loading map from: {filepath}")
        features = IOManager.parse_map(IOManager._read_json(filepath), object_name)
        logger.info(f"Loaded {len(features)} map features.")
        return features
