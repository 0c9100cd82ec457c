"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP utilisés par l'application et la table de
correspondance entre catégories d'erreurs métier et statuts HTTP.
"""

from sagasynth.domain.errors import ErrorKind

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_INTERNAL_SERVER_ERROR = 500
HTTP_BAD_GATEWAY = 502

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: HTTP_BAD_REQUEST,
    ErrorKind.NOT_FOUND: HTTP_NOT_FOUND,
    ErrorKind.PERMISSION: HTTP_FORBIDDEN,
    ErrorKind.ALREADY_DISTRIBUTED: HTTP_CONFLICT,
    ErrorKind.UPSTREAM: HTTP_BAD_GATEWAY,
}
