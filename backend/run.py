from tictactoe import create_app, socketio

app = create_app()

if __name__ == '__main__':
    port = app.config['PORT']
    app.logger.info(f"[startup] tic tac toe server listening on port {port}")
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, host='0.0.0.0', port=port, allow_unsafe_werkzeug=True)
