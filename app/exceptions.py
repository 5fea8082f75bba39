"""
报告生成相关异常
"""


class InvalidIntakeError(ValueError):
    """问卷数据格式错误（在写入任何占位报告之前拒绝）"""
    pass


class GenerationTransportError(RuntimeError):
    """叙述生成服务不可达或返回错误"""
    pass


class EmptyNarrativeError(GenerationTransportError):
    """叙述生成服务返回空文本"""
    pass


class ReportStateError(RuntimeError):
    """报告已处于终态，不允许再次变更状态"""
    pass


class ReportInFlightError(RuntimeError):
    """同一订单已有正在生成的报告"""
    pass


class OrderNotEligibleError(RuntimeError):
    """订单状态不允许生成报告"""
    pass
