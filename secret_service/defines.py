"""Well-known names of the Secret Service D-Bus API."""

SS_DBUS_NAME = 'org.freedesktop.secrets'
SS_PATH = '/org/freedesktop/secrets'

SS_INTERFACE_SERVICE = 'org.freedesktop.Secret.Service'
SS_INTERFACE_COLLECTION = 'org.freedesktop.Secret.Collection'
SS_INTERFACE_ITEM = 'org.freedesktop.Secret.Item'
SS_INTERFACE_SESSION = 'org.freedesktop.Secret.Session'
SS_INTERFACE_PROMPT = 'org.freedesktop.Secret.Prompt'

DBUS_INTERFACE_PROPERTIES = 'org.freedesktop.DBus.Properties'

SS_COLLECTION_LABEL = 'org.freedesktop.Secret.Collection.Label'
SS_ITEM_LABEL = 'org.freedesktop.Secret.Item.Label'
SS_ITEM_ATTRIBUTES = 'org.freedesktop.Secret.Item.Attributes'

# "/" is returned in place of an object path when there is nothing there,
# e.g. no prompt is needed, or an alias is unset.
NO_OBJECT = '/'

DEFAULT_ALIAS = 'default'
SESSION_ALIAS = 'session'

DBUS_SERVICE_UNKNOWN = 'org.freedesktop.DBus.Error.ServiceUnknown'
DBUS_NOT_SUPPORTED = 'org.freedesktop.DBus.Error.NotSupported'
SS_ERROR_IS_LOCKED = 'org.freedesktop.Secret.Error.IsLocked'
SS_ERROR_NO_SUCH_OBJECT = 'org.freedesktop.Secret.Error.NoSuchObject'
SS_ERROR_NO_SESSION = 'org.freedesktop.Secret.Error.NoSession'
