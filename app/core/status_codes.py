# app/core/status_codes.py

# 成功
OK = 200                  # /photos/validate 校验通过
CREATED = 201             # /photos/process 处理完成

# 输入类：所有 Rejected 均返回 400
REJECTED = 400

# 服务端处理失败（重编码异常等）
INTERNAL_ERROR = 500

# 非 RejectReason 的 reasonCode
PROCESSING_FAILED = "processing_failed"
