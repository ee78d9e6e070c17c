"""FamilyFin - 家族の家計簿と共有買い物リストのバックエンド"""
