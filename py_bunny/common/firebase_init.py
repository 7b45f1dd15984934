"""Firebase Admin app, initialized once per process."""

import firebase_admin

if firebase_admin._apps:  # pylint: disable=protected-access
  app = firebase_admin.get_app()
else:
  app = firebase_admin.initialize_app()
