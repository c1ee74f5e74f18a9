import logging

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from varcheck.checker import check
from varcheck.constants import SAMPLE_CODE

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'HOST': '127.0.0.1',
    'PORT': 5000,
    'DEBUG': False,
    'LOG_LEVEL': 'INFO',
    'MAX_SOURCE_LENGTH': 100_000
}

app = Flask(__name__)
app.config.from_mapping(DEFAULT_CONFIG)
app.config.from_prefixed_env('VARCHECK')
app.json.ensure_ascii = False
CORS(app)  # Разрешаем кросс-доменные запросы для фронтенда


def configure_logging(level):
    """Вывод логов в консоль"""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
    root_logger.addHandler(handler)


def error_response(message, status, source='request'):
    """Ответ с ошибкой запроса в унифицированном формате"""
    return jsonify({
        "success": False,
        "message": message,
        "errors": [{
            'type': 'error',
            'severity': source,
            'line': -1,
            'col': -1,
            'message': message,
            'source': source
        }],
        "symbols": [],
        "declarations": []
    }), status


@app.route('/check-declarations', methods=['POST'])
def check_declarations():
    """Эндпоинт проверки описания переменных"""
    data = request.get_json(silent=True)

    if not isinstance(data, dict) or 'code' not in data:
        return error_response("Не предоставлен код для проверки", 400)

    code = data['code']
    if not isinstance(code, str):
        return error_response("Код должен быть строкой", 400)

    max_length = app.config['MAX_SOURCE_LENGTH']
    if len(code) > max_length:
        return error_response(f"Слишком длинный текст: больше {max_length} символов", 413)

    logger.info("[==+==] =====================Начало запроса====================")
    logger.debug("[==+==] Задача:\n%s", code)

    result = check(code)

    if result.is_lexical_failure:
        logger.info("[==+==] Лексические ошибки: %s", [str(error) for error in result.errors])
    elif result.errors:
        logger.info("[==+==] Синтаксические ошибки: %s", [str(error) for error in result.errors])
    else:
        logger.info("[==+==] Проверка успешна, объявлено переменных: %d", len(result.symbol_table))

    logger.info("[==+==] =====================Конец запроса=====================")

    return jsonify(result.to_dict())


@app.route('/sample', methods=['GET'])
def sample():
    """Пример описания для кнопки 'Пример'"""
    return jsonify({"code": SAMPLE_CODE})


@app.errorhandler(HTTPException)
def handle_http_error(error):
    return error_response(error.description, error.code)


@app.errorhandler(Exception)
def handle_unexpected_error(error):
    logger.exception("[==+==] Ошибка при обработке запроса")
    return error_response(f"Исключение при проверке: {error}", 500, source='server')


if __name__ == '__main__':
    configure_logging(app.config['LOG_LEVEL'])
    logger.info("=== Проверка описания переменных (Pascal) ===")
    logger.info("Сервер запускается...")

    app.run(host=app.config['HOST'], port=app.config['PORT'], debug=app.config['DEBUG'])
