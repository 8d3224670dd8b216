from .json_response import parse_json, parse_stage_response, validate_stage_output

__all__ = ["parse_json", "parse_stage_response", "validate_stage_output"]
