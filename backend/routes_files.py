from flask import current_app, request, jsonify, send_from_directory

from errors import Forbidden, NotFound
from identity import require_identity
import repositories
from uploads import FILE_URL_PREFIX, resolve_stored_path, store_upload


def register_file_routes(app):

    @app.post('/api/upload')
    def upload():
        require_identity()
        stored = store_upload(request.files.get('file'), current_app.config)
        return jsonify(stored.to_dict())

    @app.get('/api/files/<filename>')
    def files_get(filename):
        identity = require_identity()
        if resolve_stored_path(filename, current_app.config) is None:
            raise NotFound("File not found")
        file_url = FILE_URL_PREFIX + filename
        user = repositories.users.get(identity.id)
        own_avatar = user is not None and user.avatar == file_url
        if not own_avatar and not repositories.messages.file_visible_to(file_url, identity.id):
            raise Forbidden("Access denied")
        return send_from_directory(current_app.config['UPLOAD_DIR'], filename)
