from typing import Any, Dict, Optional


def api_success(message: Optional[str] = None, **payload: Any) -> Dict[str, Any]:
	body: Dict[str, Any] = {"success": True}
	if message is not None:
		body["message"] = message
	body.update(payload)
	return body


def api_error(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
	body: Dict[str, Any] = {"success": False, "message": message, "kind": code}
	if details is not None:
		body["details"] = details
	return body
