"""常量定义：HTTP 状态码与业务常量集中声明。"""

from fastapi import status

HTTP_STATUS_OK = status.HTTP_200_OK
HTTP_STATUS_BAD_REQUEST = status.HTTP_400_BAD_REQUEST
HTTP_STATUS_NOT_FOUND = status.HTTP_404_NOT_FOUND
HTTP_STATUS_CONFLICT = status.HTTP_409_CONFLICT
HTTP_STATUS_INTERNAL_ERROR = status.HTTP_500_INTERNAL_SERVER_ERROR

# 存储卷类型
VOLUME_TYPE_LOCAL = "LOCAL"
VOLUME_TYPE_S3 = "S3"

# 查询条件中的空值哨兵
CRITERIA_EMPTY = ":empty:"
CRITERIA_NOT_EMPTY = ":notempty:"
