"""Paths of the CRM REST API, relative to the configured base URL."""

LEADS_LIST = "/api/leads/get-leads"
LEADS_CREATE = "/api/leads/create-lead"
LEADS_UPDATE = "/api/leads/update-lead/{lead_id}"
LEADS_DELETE = "/api/leads/delete-lead/{lead_id}"
LEADS_ASSIGN = "/api/leads/assign"

SALESPERSONS_LIST = "/api/salespersons/get-salespersons"
SALESPERSONS_CREATE = "/api/salespersons/create-salesperson"
SALESPERSONS_UPDATE = "/api/salespersons/update-salesperson/{salesperson_id}"
SALESPERSONS_UPDATE_EMAIL = "/api/salespersons/update-salesperson-email/{salesperson_id}"
SALESPERSONS_UPDATE_PASSWORD = "/api/salespersons/update-salesperson-password/{salesperson_id}"
SALESPERSONS_DELETE = "/api/salespersons/delete-salesperson/{salesperson_id}"

# manage-items routes use a per-kind noun, e.g. /categories/get-categories
MANAGE_ITEMS_LIST = "/api/manage-items/{kind}/get-{plural}"
MANAGE_ITEMS_CREATE = "/api/manage-items/{kind}/create-{singular}"
MANAGE_ITEMS_UPDATE = "/api/manage-items/{kind}/update-{singular}/{item_id}"
MANAGE_ITEMS_DELETE = "/api/manage-items/{kind}/delete-{singular}/{item_id}"

TAGS_LIST = "/api/manage-items/tags/get-tags"
TAGS_CREATE = "/api/manage-items/tags/create-tag"
TAGS_UPDATE = "/api/manage-items/tags/update-tag/{tag_id}"
TAGS_DELETE = "/api/manage-items/tags/delete-tag/{tag_id}"

COMMENTS_LIST = "/api/comments/get-comments/{lead_id}"
COMMENTS_ADD = "/api/comments/add-comment"
COMMENTS_DELETE = "/api/comments/delete-comment/{comment_id}"

EXTERNAL_TAGS_WHATSAPP = "/api/external-tags/whatsapp/{customer_id}"
