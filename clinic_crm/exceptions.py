"""
统一错误处理：BaseAppException 及子类
所有异常格式：success, type, code, message, detail（http_status 决定响应码）
"""


class BaseAppException(Exception):
    """基类：统一错误格式"""
    type = "error"
    code = "UNKNOWN"
    message = "Unknown error"
    http_status = 400

    def __init__(self, message=None, code=None, detail=None, http_status=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.code = code or self.code
        self.detail = detail if detail is not None else {}
        if http_status is not None:
            self.http_status = http_status

    def to_dict(self):
        return {
            "success": False,
            "type": self.type,
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }


class ValidationError(BaseAppException):
    """验证错误：请求体格式不对，或 adapter 转换后缺少必填关系"""
    type = "validation"
    code = "VALIDATION_ERROR"
    message = "Validation failed"
    http_status = 400


class BlockError(BaseAppException):
    """业务阻止：资源不存在、方法不允许等"""
    type = "block"
    code = "BLOCK"
    message = "Operation blocked"
    http_status = 409


class AuthError(BaseAppException):
    """未登录或 token 被 CRM Gateway 拒绝"""
    type = "auth"
    code = "UNAUTHORIZED"
    message = "Access denied. No token provided."
    http_status = 401


class GatewayError(BaseAppException):
    """CRM Gateway 不可达或返回了非预期的错误"""
    type = "gateway"
    code = "GATEWAY_ERROR"
    message = "CRM gateway request failed"
    http_status = 502
