from flask import current_app, jsonify, request

from gomoto.errors import ValidationError


def json_body():
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


def api_response(data, message, status_code=200):
    return (
        jsonify(
            {
                "statusCode": status_code,
                "data": data,
                "message": message,
                "success": status_code < 400,
            }
        ),
        status_code,
    )


def page_args():
    page = request.args.get("page", default=1, type=int) or 1
    limit = request.args.get("limit", default=current_app.config["DEFAULT_PAGE_SIZE"], type=int)
    limit = min(max(limit or 1, 1), current_app.config["MAX_PAGE_SIZE"])
    return max(page, 1), limit


def paginated_payload(key, paginated, serializer):
    return {
        key: [serializer(item) for item in paginated.items],
        "total": paginated.total,
        "page": paginated.page,
        "limit": paginated.per_page,
        "pages": paginated.pages,
    }
