import logging

from relay import create_app, socketio

app = create_app()


def main():
    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app.logger.info(f"Relay listening on {app.config['HOST']}:{app.config['PORT']}")
    try:
        # Werkzeug serves the relay directly; hosted platforms run it without a TTY
        socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], allow_unsafe_werkzeug=True)
    finally:
        app.extensions['relay_hub'].shutdown()


if __name__ == '__main__':
    main()
