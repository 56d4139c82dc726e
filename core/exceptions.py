"""
自定義異常類別

集中管理所有遊戲引擎與資料層的異常，方便 API 層統一處理
"""


class FizzBuzzGameException(Exception):
    """所有遊戲異常的基類"""
    pass


# ============ 輸入相關異常 ============

class InvalidArgument(FizzBuzzGameException):
    """呼叫者輸入錯誤（number < 1、規則為空、duration 非正數...）"""
    pass


# ============ Session 相關異常 ============

class SessionEnded(FizzBuzzGameException):
    """
    Session 已經結束（終止狀態）

    reason：
        COMPLETED: 這次呼叫之前就已經結束
        TIMEOUT: 這次呼叫才發現時間到了
    """
    COMPLETED = "completed"
    TIMEOUT = "timeout"

    def __init__(self, session_id, reason: str):
        self.session_id = session_id
        self.reason = reason
        if reason == self.TIMEOUT:
            message = "Time's up for this game session."
        else:
            message = "This game session is already completed."
        super().__init__(message)


class NoPriorNumber(FizzBuzzGameException):
    """還沒抽過數字就提交答案"""
    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__("No numbers have been generated for this session yet.")


# ============ 號碼池相關異常 ============

class Exhausted(FizzBuzzGameException):
    """範圍內的數字都已經用完"""
    def __init__(self, min_number: int, max_number: int):
        self.min_number = min_number
        self.max_number = max_number
        super().__init__(f"All numbers between {min_number} and {max_number} have been used.")


class NoNumbersRemaining(FizzBuzzGameException):
    """Session 的號碼池用完，無法再進行新回合"""
    def __init__(self, session_id, detail: str = ""):
        self.session_id = session_id
        super().__init__(detail or f"No numbers remaining for session {session_id}")


# ============ 查詢相關異常 ============

class GameNotFound(FizzBuzzGameException):
    """Game 不存在"""
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


class SessionNotFound(FizzBuzzGameException):
    """Session 不存在"""
    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class GameNameTaken(FizzBuzzGameException):
    """Game 名稱已被使用"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A game with the name '{name}' already exists.")
